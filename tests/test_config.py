"""
Unit tests for bpindex.config module
"""
import unittest
import tempfile
import logging
import os
import shutil
import json
from pathlib import Path
from unittest.mock import patch

from bpindex.config import (
    RESTRICTED_NAMESPACES,
    apply_env_overrides,
    configure_logging,
    get_config_path,
    get_default_config,
    load_config,
    merge_configs,
)
from bpindex.exit_codes import ConfigError


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        """Set up test environment"""
        self.temp_dir = tempfile.mkdtemp()
        self.original_home = os.environ.get('HOME')
        os.environ['HOME'] = self.temp_dir
        self.config_dir = Path(self.temp_dir) / '.bpindex'
        self.config_dir.mkdir()

    def tearDown(self):
        """Clean up test environment"""
        if self.original_home:
            os.environ['HOME'] = self.original_home
        else:
            del os.environ['HOME']
        shutil.rmtree(self.temp_dir)

    def test_get_default_config(self):
        """Test default configuration structure"""
        config = get_default_config()

        self.assertEqual(config['registry']['owner'], 'buildpacks')
        self.assertEqual(config['registry']['repo'], 'registry-index')
        self.assertEqual(config['registry']['version_tag'], 'v1')
        self.assertEqual(config['registry']['restricted_namespaces'], RESTRICTED_NAMESPACES)
        self.assertEqual(config['labels'], {'accepted': 'succeeded', 'rejected': 'failure'})
        self.assertEqual(
            config['github']['committer_email'],
            'cncf-buildpacks-maintainers@lists.cncf.io'
        )
        self.assertIn('level', config['logging'])

    def test_default_blocklist_is_a_copy(self):
        """Mutating one config must not leak into the next"""
        config = get_default_config()
        config['registry']['restricted_namespaces'].append('acme')
        self.assertNotIn('acme', get_default_config()['registry']['restricted_namespaces'])

    def test_load_config_no_file(self):
        """Test loading config when no file exists"""
        config = load_config()
        self.assertEqual(config['registry'], get_default_config()['registry'])

    def test_load_config_json_file(self):
        """Test loading config from JSON file"""
        with open(self.config_dir / 'config.json', 'w') as f:
            json.dump({'registry': {'repo': 'staging-index'}, 'logging': {'level': 'DEBUG'}}, f)

        config = load_config()

        self.assertEqual(config['registry']['repo'], 'staging-index')
        self.assertEqual(config['registry']['owner'], 'buildpacks')
        self.assertEqual(config['logging']['level'], 'DEBUG')

    def test_load_config_toml_file(self):
        """Test loading config from TOML file"""
        config_content = """
[registry]
local_path = "/srv/registry-index"

[labels]
accepted = "registered"
"""
        (self.config_dir / 'config.toml').write_text(config_content)

        config = load_config()

        self.assertEqual(config['registry']['local_path'], '/srv/registry-index')
        self.assertEqual(config['labels']['accepted'], 'registered')
        self.assertEqual(config['labels']['rejected'], 'failure')

    def test_load_config_yaml_file(self):
        """Test loading config from YAML file"""
        config_content = """
registry:
  restricted_namespaces:
    - acme
github:
  rate_limit:
    max_retries: 5
"""
        (self.config_dir / 'config.yaml').write_text(config_content)

        config = load_config()

        self.assertEqual(config['registry']['restricted_namespaces'], ['acme'])
        self.assertEqual(config['github']['rate_limit']['max_retries'], 5)
        self.assertEqual(config['github']['rate_limit']['max_delay_seconds'], 60)

    def test_invalid_json_raises_config_error(self):
        """Test that a broken config file is reported"""
        (self.config_dir / 'config.json').write_text('{"registry": ')
        with self.assertRaises(ConfigError):
            load_config()

    def test_non_mapping_raises_config_error(self):
        """Test that a config file must hold a mapping"""
        (self.config_dir / 'config.yaml').write_text('- one\n- two\n')
        with self.assertRaises(ConfigError):
            load_config()

    def test_config_path_from_environment(self):
        """Test BPINDEX_CONFIG points at an explicit file"""
        custom = Path(self.temp_dir) / 'custom.yml'
        custom.write_text('registry:\n  owner: acme\n')

        with patch.dict(os.environ, {'BPINDEX_CONFIG': str(custom)}):
            self.assertEqual(get_config_path(), custom)
            self.assertEqual(load_config()['registry']['owner'], 'acme')

    def test_empty_config_files_are_skipped(self):
        """Test that an empty file doesn't shadow a later one"""
        (self.config_dir / 'config.json').write_text('')
        (self.config_dir / 'config.toml').write_text('[registry]\nowner = "acme"\n')
        self.assertEqual(get_config_path(), self.config_dir / 'config.toml')


class TestEnvOverrides(unittest.TestCase):
    """Test BPINDEX_* environment overrides"""

    def test_nested_key_with_underscores(self):
        with patch.dict(os.environ, {'BPINDEX_REGISTRY_VERSION_TAG': 'v2'}):
            config = apply_env_overrides(get_default_config())
        self.assertEqual(config['registry']['version_tag'], 'v2')

    def test_github_token(self):
        with patch.dict(os.environ, {'BPINDEX_GITHUB_TOKEN': 'secret'}):
            config = apply_env_overrides(get_default_config())
        self.assertEqual(config['github']['token'], 'secret')

    def test_integer_values(self):
        with patch.dict(os.environ, {'BPINDEX_GITHUB_RATE_LIMIT_MAX_RETRIES': '1'}):
            config = apply_env_overrides(get_default_config())
        self.assertEqual(config['github']['rate_limit']['max_retries'], 1)

    def test_unknown_keys_ignored(self):
        with patch.dict(os.environ, {'BPINDEX_NOPE_VALUE': 'x'}):
            config = apply_env_overrides(get_default_config())
        self.assertNotIn('nope', config)


class TestMergeConfigs(unittest.TestCase):
    """Test recursive config merging"""

    def test_nested_merge(self):
        base = {'a': {'b': 1, 'c': 2}, 'd': 3}
        merged = merge_configs(base, {'a': {'c': 20}, 'e': 5})
        self.assertEqual(merged, {'a': {'b': 1, 'c': 20}, 'd': 3, 'e': 5})

    def test_lists_are_replaced(self):
        merged = merge_configs({'a': [1, 2]}, {'a': [3]})
        self.assertEqual(merged['a'], [3])


class TestConfigureLogging(unittest.TestCase):
    """Test applying the logging section"""

    def tearDown(self):
        logging.getLogger('bpindex').setLevel(logging.INFO)

    def test_level_from_config(self):
        configure_logging({'logging': {'level': 'warning'}})
        self.assertEqual(logging.getLogger('bpindex').level, logging.WARNING)

    def test_verbose_forces_debug(self):
        configure_logging({'logging': {'level': 'ERROR'}}, verbose=True)
        self.assertEqual(logging.getLogger('bpindex').level, logging.DEBUG)

    def test_unknown_level(self):
        with self.assertRaises(ConfigError):
            configure_logging({'logging': {'level': 'LOUD'}})


if __name__ == '__main__':
    unittest.main()
