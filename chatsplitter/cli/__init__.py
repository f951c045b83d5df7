"""
Click-based command line interface.

Commands live in ``chatsplitter.cli.commands`` and are registered on the
``main`` group here. Shared state (runtime settings, debug flag) is carried
on the click context object.
"""
import logging
import sys

import click

from chatsplitter.core.config import Settings


class CLIContext:
    """State shared by all commands via ``ctx.obj``."""

    def __init__(self, settings: Settings, debug: bool = False):
        self.settings = settings
        self.debug = debug


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


@click.group()
@click.option('--debug', is_flag=True, envvar='CHATSPLITTER_DEBUG', help='Log boundary scores and decisions to stderr')
@click.pass_context
def main(ctx, debug):
    """Split AI chat transcripts into topic segments."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise click.ClickException(f"Invalid CHATSPLITTER_* setting: {e}")
    debug = debug or settings.debug
    configure_logging(debug)
    ctx.obj = CLIContext(settings=settings, debug=debug)


from chatsplitter.cli.commands.segment import models, scores, segment  # noqa: E402

main.add_command(segment)
main.add_command(scores)
main.add_command(models)
