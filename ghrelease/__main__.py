import dotenv
import typer

from ghrelease.__version__ import __version__
from ghrelease.commands import publish
from ghrelease.core.logging import setup_logging

app = typer.Typer(
    help='ghrelease: create or update GitHub releases and upload their assets.',
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)

app.add_typer(publish.app, name='publish')


def version_callback(value: bool):
    if value:
        typer.echo(f"ghrelease {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    debug: bool = typer.Option(False, '--debug', help='Enable debug logging'),
    version: bool = typer.Option(
        False, '--version', callback=version_callback, is_eager=True,
        help='Show version and exit',
    ),
):
    """
    ghrelease CLI - idempotent GitHub release publishing.
    """
    dotenv.load_dotenv()
    setup_logging(level='DEBUG' if debug else 'INFO')


if __name__ == '__main__':
    app()
