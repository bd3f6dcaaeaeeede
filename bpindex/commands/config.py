import click
import json


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.pass_obj
def show_config(config, pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    The GitHub token is masked.
    """
    from bpindex.config import get_config_path

    if path:
        config_path = get_config_path()
        click.echo(json.dumps({"config_path": str(config_path)}))
        return

    shown = json.loads(json.dumps(config))
    if shown.get("github", {}).get("token"):
        shown["github"]["token"] = "***"

    if pretty:
        # Pretty print for human readability
        click.echo(json.dumps(shown, indent=2, ensure_ascii=False))
    else:
        # Default: single-line JSON (JSONL)
        click.echo(json.dumps(shown, ensure_ascii=False))
