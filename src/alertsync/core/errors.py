"""
Unified error handling for alertsync.

Every failure the rule pipeline can report is an ``AlertSyncError``
subclass carrying a message, a details mapping for structured logging
and an exit code for the CLI.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Ruler error (push, fetch or reconciliation failure)
- 12: Validation error (template or expression)
- 127: Unknown/internal error
- 130: Interrupted (SIGINT)
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    RULER_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127
    INTERRUPTED = 130


class AlertSyncError(Exception):
    """Base exception for alertsync errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(AlertSyncError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ValidationError(AlertSyncError):
    """Raised when a stored template or its expression is not usable."""

    exit_code = ExitCode.VALIDATION_ERROR


class TemplateDecodeError(ValidationError):
    """Raised when a stored alert definition template is not well-formed."""


class ExpressionError(ValidationError):
    """Raised when substitution into, or validation of, an expression fails."""

    def __init__(self, message: str, expression: str, details: dict[str, Any] | None = None):
        super().__init__(message, {"expression": expression, **(details or {})})
        self.expression = expression


class TemplateSyntaxError(ExpressionError):
    """Raised when an expression template cannot be parsed."""


class UndefinedFieldError(ExpressionError):
    """Raised when an expression template references an unknown field."""

    def __init__(self, field: str, expression: str):
        super().__init__(
            f"template references undefined field {field!r}",
            expression,
            {"field": field},
        )
        self.field = field


class InvalidExpressionError(ExpressionError):
    """Raised when a rendered expression is not valid PromQL."""

    def __init__(self, reason: str, expression: str, position: int | None = None):
        super().__init__(
            f"invalid PromQL expression {expression!r}: {reason}",
            expression,
            {"position": position},
        )
        self.reason = reason
        self.position = position


class RulerError(AlertSyncError):
    """Raised when talking to the ruler fails."""

    exit_code = ExitCode.RULER_ERROR


class PushFailedError(RulerError):
    """Raised when writing a rule group to the ruler fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


class FetchFailedError(RulerError):
    """Raised when reading a rule group back from the ruler fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


class DecodeFailedError(RulerError):
    """Raised when the ruler answers with a payload that is not a rule group."""


class UnexpectedRuleCountError(RulerError):
    """Raised when a fetched rule group does not hold exactly one rule."""

    def __init__(self, count: int):
        super().__init__(f"one rule per rule group expected, {count} found", {"count": count})
        self.count = count


class ReconciliationMismatchError(RulerError):
    """Raised when the ruler's copy of a rule group differs from the pushed one."""

    def __init__(self, expected: Any, actual: Any, differences: list[str]):
        super().__init__(
            "rule group present in the ruler does not match the expected one",
            {"differences": differences},
        )
        self.expected = expected
        self.actual = actual
        self.differences = differences

    def __str__(self) -> str:
        return f"{self.message}. Expected: {self.expected!r}, Received: {self.actual!r}"


CommandFunc = TypeVar("CommandFunc", bound=Callable[..., int])


def _log_failure(event: str, error: BaseException, exit_code: int, **fields: Any) -> None:
    logger.error(event, error_type=type(error).__name__, exit_code=int(exit_code), **fields)


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[CommandFunc], CommandFunc]:
    """
    Wrap a CLI entry point so failures become exit codes instead of tracebacks.

    ``AlertSyncError`` subclasses exit with their own ``exit_code`` and log
    their details; Ctrl-C exits with ``ExitCode.INTERRUPTED``; anything else
    exits with ``ExitCode.UNKNOWN_ERROR``. Tracebacks are printed to stderr
    only when ``show_traceback`` (or the error's own flag) asks for them.
    """

    def decorator(func: CommandFunc) -> CommandFunc:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except AlertSyncError as exc:
                if log_errors:
                    _log_failure(
                        "command_error", exc, exc.exit_code, message=exc.message, **exc.details
                    )
                if exc.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return exc.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return ExitCode.INTERRUPTED
            except Exception as exc:
                if log_errors:
                    _log_failure("unexpected_error", exc, ExitCode.UNKNOWN_ERROR, message=str(exc))
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: AlertSyncError) -> str:
    """Render ``message (key=value, ...)``, leaving out details that are None."""
    details = {k: v for k, v in error.details.items() if v is not None}
    if not details:
        return error.message
    rendered = ", ".join(f"{key}={value}" for key, value in details.items())
    return f"{error.message} ({rendered})"
