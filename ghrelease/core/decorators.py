import functools
from collections.abc import Callable
from typing import Any

import requests
import structlog
import typer

from ghrelease.core.errors import GitHubAPIError
from ghrelease.core.errors import ReleaseError
from ghrelease.core.logging import console
logger = structlog.get_logger()


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn release failures into a readable message and a non-zero exit."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except ValueError as e:
            console.print(f"[bold red]Validation Error:[/] {e}")
            logger.debug('Validation error', exc_info=True)
            raise typer.Exit(1)
        except GitHubAPIError as e:
            console.print(f"[bold red]GitHub API Error ({e.status}):[/] {e.message}")
            for detail in e.errors:
                console.print(f"  [red]-[/] {detail}")
            logger.debug('GitHub API error', exc_info=True)
            raise typer.Exit(1)
        except ReleaseError as e:
            console.print(f"[bold red]Release Error:[/] {e}")
            logger.debug('Release error', exc_info=True)
            raise typer.Exit(1)
        except requests.RequestException as e:
            console.print(f"[bold red]Network Error:[/] {e}")
            logger.debug('Network error', exc_info=True)
            raise typer.Exit(1)
        except KeyboardInterrupt:
            console.print('\n[yellow]Operation cancelled by user.[/]')
            raise typer.Exit(130)
        except Exception as e:
            console.print(f"[bold red]Unexpected Error:[/] {e}")
            logger.exception('Unexpected error')
            raise typer.Exit(1)
    return wrapper
