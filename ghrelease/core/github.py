"""GitHub authentication utilities."""
import typer
from rich.console import Console
from rich.panel import Panel


def check_github_token(token: str | None, console: Console | None = None) -> str:
    """
    Check that a GitHub token is provided.
    If not, print a user-friendly error message and exit.
    """
    console = console or Console()

    if not token:
        console.print()
        console.print(
            Panel(
                '[bold]GitHub Token Missing[/]\n\n'
                'Publishing a release needs a token with [bold blue]contents: write[/] permission.\n\n'
                '- In a workflow, pass [bold]${{ secrets.GITHUB_TOKEN }}[/] as GITHUB_TOKEN.\n'
                '- Locally, create a token at [link=https://github.com/settings/personal-access-tokens][blue]github.com/settings/personal-access-tokens[/link]\n'
                '  and export it: [bold]export GITHUB_TOKEN=your_token_here[/]\n\n'
                'Alternatively, use the [bold]--token[/] command-line option.',
                title='[bold red]Error[/]',
                title_align='left',
                border_style='red',
                padding=(1, 2),
            ),
        )
        raise typer.Exit(1)

    return token
