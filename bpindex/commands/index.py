"""
Read-only index commands: 'path', 'show' and 'owners'.

None of these write to the registry; in particular 'owners' never
bootstraps a missing owners document.
"""

import click

from ..exit_codes import CommandError, InvalidRecord, DATA_ERROR
from ..output import emit
from ..services import IndexStore, OwnerDirectory, shard_path
from ..cli_utils import standard_command, add_common_options, open_store


def _split_id(buildpack_id):
    namespace, sep, name = buildpack_id.partition('/')
    if not sep or not namespace:
        raise InvalidRecord(f"invalid id {buildpack_id!r}, expected namespace/name")
    return namespace, name


@click.command('path')
@click.argument('buildpack_id', metavar='NAMESPACE/NAME')
@standard_command
def path_handler(buildpack_id):
    """Print the index shard path for a buildpack.

    \b
    Examples:
        bpindex path heroku/java     # ja/va/heroku_java
        bpindex path heroku/go       # 2/heroku_go
    """
    namespace, name = _split_id(buildpack_id)
    click.echo(shard_path(namespace, name))


@click.command('show')
@click.argument('buildpack_id', metavar='NAMESPACE/NAME')
@add_common_options('pretty', 'local')
@click.pass_obj
@standard_command
def show_handler(config, buildpack_id, pretty, local):
    """List the registered versions of a buildpack.

    Output is one JSON record per line in shard order, re-encoded from
    the decoded records (spacing of the stored lines is not kept), or a
    table with --pretty.
    """
    namespace, name = _split_id(buildpack_id)
    records = IndexStore(open_store(config, local)).read(namespace, name)
    if not records:
        raise CommandError(f"{buildpack_id} is not registered", DATA_ERROR)
    emit(records, pretty=pretty)


@click.command('owners')
@click.argument('namespace')
@add_common_options('pretty', 'local')
@click.pass_obj
@standard_command
def owners_handler(config, namespace, pretty, local):
    """List the users and orgs allowed to publish into a namespace."""
    version_tag = config.get('registry', {}).get('version_tag', 'v1')
    owners = OwnerDirectory(open_store(config, local), version_tag).get(namespace)
    if owners is None:
        raise CommandError(f"namespace {namespace!r} has no owners yet", DATA_ERROR)
    emit(sorted(owners, key=lambda o: (o.type.value, str(o.id))), pretty=pretty)
