"""
Common CLI utilities and decorators for consistent command behavior.
"""

import sys
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .infra import GitHubClient, LocalContentStore
from .output import emit_error


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - The command writes its own output and may return an exit code
    - CommandErrors become a JSON error on stderr and their exit code
    - Anything else becomes a JSON error and a mapped exit code
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            code = func(*args, **kwargs)
        except KeyboardInterrupt:
            emit_error("Interrupted by user", type="KeyboardInterrupt")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            context: Dict[str, Any] = {'exit_code': e.exit_code}
            if hasattr(e, 'fields'):
                context['fields'] = e.fields
            emit_error(str(e), type=type(e).__name__, context=context)
            sys.exit(e.exit_code)
        except Exception as e:
            emit_error(f"Command failed: {e}", type=type(e).__name__)
            sys.exit(get_exit_code_for_exception(e))

        sys.exit(code or SUCCESS)

    return wrapper


def open_store(config: Dict[str, Any], local: Optional[str] = None):
    """
    Content store for a command.

    An explicit ``--local`` directory wins, then ``registry.local_path``
    from config; otherwise the registry repository on GitHub is used.
    """
    local = local or config.get('registry', {}).get('local_path')
    if local:
        return LocalContentStore(Path(local), auto_create=False)
    return GitHubClient.from_config(config)


# Standard options that many commands share
common_options = {
    'pretty': click.option('--pretty', is_flag=True,
                           help='Display as a formatted table instead of JSONL'),
    'local': click.option('--local', type=click.Path(file_okay=False),
                          help='Use a local checkout of the index instead of GitHub'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('pretty', 'local')
        def my_command(pretty, local):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
