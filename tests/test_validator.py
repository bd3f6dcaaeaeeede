"""
Tests for submission validation.

Tests cover:
- Title checks (missing, no ADD verb)
- TOML parse failures
- Field rules for id, version (semver) and addr (digest references)
- Restricted namespaces
- Tagged ValidationResult from check()
"""

import pytest

from bpindex.config import RESTRICTED_NAMESPACES, load_config
from bpindex.domain import BuildpackRecord
from bpindex.exit_codes import (
    ConfigError,
    MalformedSubmission,
    RestrictedNamespace,
    SchemaViolation,
    DATA_ERROR,
)
from bpindex.services.validator import SubmissionValidator


DIGEST = "9d88250dfd77dbf5a535f1358c6a05dc2c0d3a22defbdcd72bb8f5e24b84e21d"
ADDR = f"gcr.io/heroku/java@sha256:{DIGEST}"
TITLE = "ADD heroku/java@0.0.0"


def make_body(id="heroku/java", version="0.0.0", addr=ADDR):
    lines = []
    if id is not None:
        lines.append(f'id = "{id}"')
    if version is not None:
        lines.append(f'version = "{version}"')
    if addr is not None:
        lines.append(f'addr = "{addr}"')
    return "\n".join(lines)


@pytest.fixture
def validator():
    return SubmissionValidator(RESTRICTED_NAMESPACES)


class TestValidSubmission:
    """Tests for submissions that should be accepted."""

    def test_validates_successfully(self, validator):
        record = validator.validate(TITLE, make_body())
        assert record == BuildpackRecord(
            namespace="heroku",
            name="java",
            version="0.0.0",
            address=ADDR,
            yanked=False,
        )

    def test_wire_form_matches_registry(self, validator):
        record = validator.validate(TITLE, make_body())
        assert record.to_dict() == {
            "ns": "heroku",
            "name": "java",
            "version": "0.0.0",
            "yanked": False,
            "addr": ADDR,
        }

    def test_is_deterministic(self, validator):
        first = validator.validate(TITLE, make_body())
        second = validator.validate(TITLE, make_body())
        assert first == second

    @pytest.mark.parametrize("version", [
        "1.2.3",
        "10.20.30",
        "1.0.0-alpha",
        "1.0.0-alpha.1",
        "1.0.0-0.3.7",
        "1.0.0-x.7.z.92",
        "1.0.0+20130313144700",
        "1.0.0-beta+exp.sha.5114f85",
    ])
    def test_accepts_semver(self, validator, version):
        record = validator.validate(TITLE, make_body(version=version))
        assert record.version == version

    @pytest.mark.parametrize("addr", [
        f"docker.io/heroku/java@sha256:{DIGEST}",
        f"registry.example.com:5000/team/sub/java@sha256:{DIGEST}",
        f"gcr.io/heroku/java@sha256:{DIGEST.upper()}",
    ])
    def test_accepts_digest_references(self, validator, addr):
        record = validator.validate(TITLE, make_body(addr=addr))
        assert record.address == addr

    def test_name_is_remainder_after_namespace(self, validator):
        record = validator.validate(TITLE, make_body(id="heroku/java/extra"))
        assert record.namespace == "heroku"
        assert record.name == "java/extra"

    def test_ignores_unknown_keys(self, validator):
        body = make_body() + '\nhomepage = "https://example.com"'
        record = validator.validate(TITLE, body)
        assert record.id == "heroku/java"


class TestMalformedSubmission:
    """Tests for titles and bodies that can't be read at all."""

    def test_missing_title(self, validator):
        with pytest.raises(MalformedSubmission, match="issue title is missing"):
            validator.validate("", make_body())

    def test_title_without_add_verb(self, validator):
        with pytest.raises(MalformedSubmission, match="issue should contain ADD"):
            validator.validate("heroku/java@0.0.0", make_body())

    def test_invalid_toml(self, validator):
        body = '"heroku/java"\nversion "0.0.0"'
        with pytest.raises(MalformedSubmission, match="issue with TOML"):
            validator.validate(TITLE, body)

    def test_exit_code(self, validator):
        with pytest.raises(MalformedSubmission) as exc_info:
            validator.validate("", "")
        assert exc_info.value.exit_code == DATA_ERROR
        assert exc_info.value.user_error


class TestSchemaViolation:
    """Tests for field shape errors."""

    def test_invalid_semver(self, validator):
        with pytest.raises(SchemaViolation, match="invalid semver") as exc_info:
            validator.validate(TITLE, make_body(version="0.0.0.0"))
        assert exc_info.value.fields == ["version"]

    @pytest.mark.parametrize("version", ["1", "1.2", "01.2.3", "v1.2.3", "1.2.3-", "1.2.3-01"])
    def test_rejects_non_semver(self, validator, version):
        with pytest.raises(SchemaViolation):
            validator.validate(TITLE, make_body(version=version))

    def test_tag_before_digest_is_invalid(self, validator):
        addr = f"gcr.io/heroku/java:tag@sha256:{DIGEST}"
        with pytest.raises(SchemaViolation, match="invalid addr") as exc_info:
            validator.validate(TITLE, make_body(addr=addr))
        assert exc_info.value.fields == ["addr"]

    @pytest.mark.parametrize("addr", [
        "gcr.io/heroku/java:latest",
        f"gcr.io/heroku/java@sha256:{DIGEST[:-1]}",
        f"heroku/java@sha256:{DIGEST}",
        f"GCR.IO/heroku/java@sha256:{DIGEST}",
        f"gcr.io/heroku/java@sha256:{DIGEST} trailing",
    ])
    def test_rejects_bad_addresses(self, validator, addr):
        with pytest.raises(SchemaViolation):
            validator.validate(TITLE, make_body(addr=addr))

    @pytest.mark.parametrize("id", ["", "java", "/java"])
    def test_invalid_id(self, validator, id):
        with pytest.raises(SchemaViolation, match="invalid id"):
            validator.validate(TITLE, make_body(id=id))

    def test_missing_fields_are_all_reported(self, validator):
        with pytest.raises(SchemaViolation) as exc_info:
            validator.validate(TITLE, "")
        assert exc_info.value.fields == ["id", "version", "addr"]
        assert str(exc_info.value) == "invalid id, invalid semver, invalid addr"

    def test_non_string_version(self, validator):
        body = 'id = "heroku/java"\nversion = 1\n' + f'addr = "{ADDR}"'
        with pytest.raises(SchemaViolation, match="invalid semver"):
            validator.validate(TITLE, body)


class TestRestrictedNamespace:
    """Tests for the reserved namespace list."""

    @pytest.mark.parametrize("namespace", RESTRICTED_NAMESPACES)
    def test_every_reserved_name_is_rejected(self, validator, namespace):
        with pytest.raises(RestrictedNamespace, match=f'"{namespace}" is a restricted namespace'):
            validator.validate(TITLE, make_body(id=f"{namespace}/java"))

    def test_schema_errors_take_precedence(self, validator):
        with pytest.raises(SchemaViolation):
            validator.validate(TITLE, make_body(id="official/java", version="bad"))

    def test_match_is_case_sensitive(self, validator):
        record = validator.validate(TITLE, make_body(id="Official/java"))
        assert record.namespace == "Official"

    def test_custom_blocklist(self):
        validator = SubmissionValidator(["heroku"])
        with pytest.raises(RestrictedNamespace):
            validator.validate(TITLE, make_body())
        assert SubmissionValidator([]).validate(TITLE, make_body(id="official/java"))

    def test_from_config(self):
        config = {'registry': {'restricted_namespaces': ['acme']}}
        validator = SubmissionValidator.from_config(config)
        assert validator.restricted_namespaces == frozenset(['acme'])

    def test_blocklist_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv('HOME', str(tmp_path))
        monkeypatch.delenv('BPINDEX_CONFIG', raising=False)
        monkeypatch.setenv('BPINDEX_REGISTRY_RESTRICTED_NAMESPACES', 'official')

        validator = SubmissionValidator.from_config(load_config())

        assert validator.restricted_namespaces == frozenset(['official'])
        with pytest.raises(RestrictedNamespace):
            validator.validate(TITLE, make_body(id="official/java"))

    def test_comma_separated_blocklist(self):
        config = {'registry': {'restricted_namespaces': 'official, cnb,,'}}
        validator = SubmissionValidator.from_config(config)
        assert validator.restricted_namespaces == frozenset(['official', 'cnb'])

    @pytest.mark.parametrize("value", [5, True, {'official': 1}, ['official', 3]])
    def test_bad_blocklist_config(self, value):
        with pytest.raises(ConfigError):
            SubmissionValidator.from_config({'registry': {'restricted_namespaces': value}})


class TestCheck:
    """Tests for the non-raising check() result."""

    def test_ok_result(self, validator):
        result = validator.check(TITLE, make_body())
        assert result.ok
        assert result.errors == []
        assert result.record.name == "java"

    def test_error_result_names_fields(self, validator):
        result = validator.check(TITLE, make_body(version="x", addr="nope"))
        assert not result.ok
        assert result.record is None
        assert [e.field for e in result.errors] == ["version", "addr"]
        assert [e.message for e in result.errors] == ["invalid semver", "invalid addr"]

    def test_check_does_not_apply_blocklist(self, validator):
        result = validator.check(TITLE, make_body(id="official/java"))
        assert result.ok
