"""PromQL expression validation."""

from alertsync.validation.promql import PromQLSyntaxError, is_valid_expr, parse_expr

__all__ = ["PromQLSyntaxError", "is_valid_expr", "parse_expr"]
