#!/usr/bin/env python3

import click

from bpindex import __version__
from bpindex.config import load_config, configure_logging
from bpindex.exit_codes import ConfigError
from bpindex.output import emit_error
from bpindex.commands.submit import submit_handler
from bpindex.commands.index import path_handler, show_handler, owners_handler
from bpindex.commands.config import config_cmd


@click.group()
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose):
    """bpindex - Buildpack registry indexer.

    Accepts buildpack submissions from registry issues, checks them
    against namespace ownership, and appends them to the sharded index.
    """
    try:
        config = load_config()
        configure_logging(config, verbose)
    except ConfigError as e:
        emit_error(str(e), type="ConfigError")
        ctx.exit(e.exit_code)
    ctx.obj = config


# Core commands
cli.add_command(submit_handler, name='submit')
cli.add_command(path_handler, name='path')
cli.add_command(show_handler, name='show')
cli.add_command(owners_handler, name='owners')

# Command groups
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
