"""
Error handling module for dns-plugin.

This module defines the errors raised while talking to a plugin and the helpers
that classify transport failures, HTTP statuses and malformed bodies into them.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

import httpx

T = TypeVar("T")

logger = logging.getLogger("dns-plugin.provider.errors")


class PluginError(Exception):
    """Base class for all errors raised by the plugin provider."""


class NegotiationError(PluginError):
    """The plugin could not be reached or does not speak the expected media type."""


class PluginTransportError(PluginError):
    """A request did not reach the plugin or no response came back."""


class PluginTimeoutError(PluginTransportError):
    """A request exceeded its deadline."""


class PluginStatusError(PluginError):
    """The plugin answered with a non-success HTTP status."""

    def __init__(self, operation: str, status_code: int):
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"failed to {operation} with code {status_code}")


class PluginDecodeError(PluginError):
    """The plugin answered with a body that could not be decoded."""


def transport_error(operation: str, exc: httpx.HTTPError) -> PluginTransportError:
    """
    Convert an httpx error into a transport error.

    Args:
        operation: Operation that failed, e.g. "get records"
        exc: Error raised by httpx

    Returns:
        PluginTransportError: Error to raise, chained from exc by the caller
    """
    if isinstance(exc, httpx.TimeoutException):
        return PluginTimeoutError(f"failed to {operation}: request timed out: {exc}")
    return PluginTransportError(f"failed to {operation}: {exc}")


def check_status(operation: str, response: httpx.Response) -> None:
    """
    Raise a PluginStatusError unless the response has a 2xx status.
    """
    if not response.is_success:
        raise PluginStatusError(operation, response.status_code)


def fail_safe(default_factory: Callable[[], T]) -> Callable[..., Any]:
    """
    Decorator for provider coroutines whose failures must not reach the caller.

    Any PluginError raised by the wrapped coroutine is logged and replaced by a
    fresh value from default_factory. Cancellation and programming errors still
    propagate.

    Args:
        default_factory: Builds the value returned when the call fails
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except PluginError as e:
                default = default_factory()
                logger.warning(
                    f"{func.__name__} failed, falling back to {default!r}: {e}"
                )
                return default

        return wrapper

    return decorator
