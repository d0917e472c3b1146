from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any

import click

from shimmer import exceptions

if TYPE_CHECKING:
    from collections.abc import Callable


def _handle_shimmer_error(e: exceptions.ShimmerError) -> click.ClickException:
    """Convert ShimmerError to user-friendly ClickException."""
    message = e.format_user_message()
    if suggestion := e.get_suggestion():
        message = f"{message}\n\nTip: {suggestion}"
    return click.ClickException(message)


def with_error_handling[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Wrap function so library errors become clean CLI errors."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except click.ClickException:
            raise
        except exceptions.ShimmerError as e:
            raise _handle_shimmer_error(e) from e
        except OSError as e:
            raise click.ClickException(str(e)) from e

    return wrapper


def shimmer_command(
    name: str | None = None, **attrs: Any
) -> Callable[[Callable[..., Any]], click.Command]:
    """Create a Click command with Shimmer error handling."""

    def decorator(func: Callable[..., Any]) -> click.Command:
        return click.command(name=name, **attrs)(with_error_handling(func))

    return decorator
