"""topicview CLI - browse a topic branch as an evolving patch series."""

import sys

import click
import yaml
from rich.markup import escape

from topicview import __version__
from topicview.config import PatchViewConfig, detect_project_root
from topicview.errors import format_error
from topicview.logging import configure_logging, stderr_console
from topicview.session import run_patch_view

console = stderr_console

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Verbose diagnostics and git command echoing on stderr")
@click.pass_context
def cli(ctx, debug):
    """topicview: review a long-lived topic branch as a patch series."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command(
    "patch-view",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option("--tool", help="Shell command to browse the result with (default: git log -p)")
@click.option("--accurate", is_flag=True, help="Keep hashes and line numbers in patches")
@click.argument("branch")
@click.argument("upstream")
@click.argument("range_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def patch_view(ctx, tool, accurate, branch, upstream, range_args):
    """Replay BRANCH since UPSTREAM as patch files and tagged checkpoints.

    Each commit unique to BRANCH becomes a <subject>.patch file in a scratch
    repository; each tag becomes a checkpoint commit. The browsing tool then
    runs inside that repository, which is deleted when it exits.

    Extra RANGE_ARGS are passed to git rev-list unchanged.

    Examples:
        topicview patch-view my-topic origin/main
        topicview patch-view --tool tig my-topic origin/main --since=2.weeks
    """
    try:
        config = PatchViewConfig.load(
            tool=tool,
            accurate=True if accurate else None,
            debug=ctx.obj.get("debug", False),
            project_path=detect_project_root(),
        )
    except (OSError, yaml.YAMLError) as e:
        console.print(f"[red]Error: could not read config: {escape(str(e))}[/red]")
        sys.exit(1)

    configure_logging(config.debug)
    result = run_patch_view(branch, upstream, tuple(range_args), config)
    if not result.ok:
        console.print(f"[red]{escape(format_error(result.error))}[/red]")
        sys.exit(1)

    console.print(f"[green]✓[/green] [dim]{result.value.summary}[/dim]")


def main() -> None:
    """Console entry point.

    Usage errors exit with status 1, interruption with 130.
    """
    try:
        code = cli.main(prog_name="topicview", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    except (click.Abort, KeyboardInterrupt):
        console.print("[yellow]Interrupted[/yellow]")
        sys.exit(130)
    sys.exit(code or 0)


if __name__ == "__main__":
    main()
