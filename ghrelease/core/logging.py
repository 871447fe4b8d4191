import logging
import os
import sys
from typing import Any

import structlog
from rich.console import Console

# Shared console for human-facing output (summaries, error panels)
console = Console()

LEVEL_STYLES = {
    'debug': 'dim',
    'info': 'green',
    'warning': 'yellow',
    'error': 'bold red',
    'critical': 'bold magenta',
}


class RichConsoleRenderer:
    """
    Render structlog events as a single rich-styled line:
    `time logger LEVEL event key=value ...`.

    An optional `_style` key in the event dict styles the whole line.
    """

    def __init__(self, out: Console | None = None):
        self._console = out or Console(stderr=True)

    def __call__(self, logger, name, event_dict):
        style = event_dict.pop('_style', None)
        event = event_dict.pop('event', '')
        level = event_dict.pop('level', 'info')
        logger_name = event_dict.pop('logger', None)
        timestamp = event_dict.pop('timestamp', '')
        exception = event_dict.pop('exception', None)
        event_dict.pop('exc_info', None)

        level_style = LEVEL_STYLES.get(level, 'white')
        parts = []
        if timestamp:
            parts.append(f"[dim]{timestamp}[/dim]")
        if logger_name:
            parts.append(f"[bold]{logger_name}[/bold]")
        parts.append(f"[{level_style}]{level:<8}[/{level_style}]")
        parts.append(str(event))
        parts.extend(
            f"[cyan]{key}[/cyan]=[green]{value!r}[/green]"
            for key, value in event_dict.items()
        )

        line = ' '.join(parts)
        if exception:
            line += f"\n[red]{exception}[/red]"

        self._console.print(line, style=style, highlight=False)
        raise structlog.DropEvent


def drop_style_processor(logger, method_name, event_dict):
    """Keep the renderer-only `_style` hint out of JSON output."""
    event_dict.pop('_style', None)
    return event_dict


def setup_logging(level: str = 'INFO') -> None:
    """
    Configure structlog for the CLI.

    Console rendering through rich by default, JSON lines when
    `ENV=production`.
    """
    logging.basicConfig(format='%(message)s', stream=sys.stderr, level=level)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt='%H:%M:%S'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if os.getenv('ENV') == 'production':
        processors = shared_processors + [
            drop_style_processor,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [RichConsoleRenderer()]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
