"""
Handles the 'submit' command: process one registry issue.

Meant to run from the registry's issue workflow, where GitHub Actions
provides the triggering event in $GITHUB_EVENT_PATH.
"""

import json
import click

from ..domain import Submission, Submitter
from ..exit_codes import CommandError, USAGE_ERROR
from ..infra import GitHubClient
from ..output import emit
from ..services import SubmissionProcessor, SubmissionValidator, shard_path
from ..cli_utils import standard_command, add_common_options, open_store


def _load_event(event_path):
    with open(event_path, 'r') as f:
        try:
            payload = json.load(f)
        except ValueError as e:
            raise CommandError(f"{event_path} is not valid JSON: {e}", USAGE_ERROR)
    try:
        return Submission.from_event(payload)
    except (KeyError, TypeError) as e:
        raise CommandError(f"{event_path} is not an issues event: missing {e}", USAGE_ERROR)


def _build_submission(event_path, title, body, body_file, user_id, user_login, ticket_id, dry_run):
    if title is None:
        if not event_path:
            raise click.UsageError("Provide --event (or GITHUB_EVENT_PATH) or --title")
        return _load_event(event_path)

    if body_file is not None:
        body = body_file.read()

    if not dry_run and (user_id is None or not user_login or ticket_id is None):
        raise click.UsageError("--user-id, --user-login and --issue are required with --title")

    return Submission(
        title=title,
        body=body or '',
        submitter=Submitter(id=user_id, login=user_login or ''),
        ticket_id=ticket_id or 0,
    )


@click.command('submit')
@click.option('--event', 'event_path', envvar='GITHUB_EVENT_PATH',
              type=click.Path(exists=True, dir_okay=False),
              help='GitHub issues event payload (default: $GITHUB_EVENT_PATH)')
@click.option('--title', help='Issue title, e.g. "ADD heroku/java@0.0.0"')
@click.option('--body', help='Issue body (TOML with id, version, addr)')
@click.option('--body-file', type=click.File('r'), help='Read the issue body from a file')
@click.option('--user-id', type=int, help='GitHub id of the submitter')
@click.option('--user-login', help='GitHub login of the submitter')
@click.option('--issue', 'ticket_id', type=int, help='Issue number to close')
@click.option('--dry-run', is_flag=True, help='Only validate and show where the record would go')
@add_common_options('pretty', 'local')
@click.pass_obj
@standard_command
def submit_handler(config, event_path, title, body, body_file, user_id, user_login,
                   ticket_id, dry_run, pretty, local):
    """Validate, authorize and index a buildpack submission.

    The issue is closed with the accepted label on success. A submission
    that is invalid, unauthorized or a duplicate is closed with the
    rejected label and a comment giving the reason. If GitHub fails, the
    issue is left open and the command exits non-zero.

    \b
    Examples:
        # In the registry's issue workflow
        bpindex submit
        # Check a submission without touching anything
        bpindex submit --dry-run --title "ADD heroku/java@0.0.0" --body-file body.toml
        # Index into a local checkout, still closing the issue on GitHub
        bpindex submit --local ./registry-index --event event.json
    """
    submission = _build_submission(
        event_path, title, body, body_file, user_id, user_login, ticket_id, dry_run
    )

    if dry_run:
        record = SubmissionValidator.from_config(config).validate(submission.title, submission.body)
        path = shard_path(record.namespace, record.name)
        emit([{'record': record.to_dict(), 'path': path}], pretty=pretty)
        return None

    github = GitHubClient.from_config(config)
    store = github
    if local or config.get('registry', {}).get('local_path'):
        store = open_store(config, local)
    processor = SubmissionProcessor.from_config(config, store, github, github)

    outcome = processor.process(submission)
    emit([outcome], pretty=pretty)
    return outcome.exit_code
