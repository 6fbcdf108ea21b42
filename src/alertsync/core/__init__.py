"""Core modules for alertsync - centralized definitions and utilities."""

from alertsync.core.errors import (
    AlertSyncError,
    ConfigurationError,
    DecodeFailedError,
    ExitCode,
    ExpressionError,
    FetchFailedError,
    InvalidExpressionError,
    PushFailedError,
    ReconciliationMismatchError,
    RulerError,
    TemplateDecodeError,
    TemplateSyntaxError,
    UndefinedFieldError,
    UnexpectedRuleCountError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "AlertSyncError",
    "ConfigurationError",
    "ValidationError",
    "TemplateDecodeError",
    "ExpressionError",
    "TemplateSyntaxError",
    "UndefinedFieldError",
    "InvalidExpressionError",
    "RulerError",
    "PushFailedError",
    "FetchFailedError",
    "DecodeFailedError",
    "UnexpectedRuleCountError",
    "ReconciliationMismatchError",
    "main_with_error_handling",
    "format_error_message",
]
