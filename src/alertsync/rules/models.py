"""
Alert Rule Models

Rules and rule groups as the ruler stores them. Both are immutable and
reject unknown keys, so a typo in a stored template or an unexpected
ruler response fails loudly instead of being dropped.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _scalar_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return value


class Rule(BaseModel):
    """
    Prometheus alerting rule.

    Example:
        {
            "alert": "HighCPUUsage",
            "expr": "cpu_usage > 80",
            "for": "1m",
            "labels": {"threshold": "80", "duration": "1m0s"},
            "annotations": {"summary": "High CPU usage detected"},
        }
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    alert: str = ""
    expr: str
    for_: str = Field(default="", alias="for")
    annotations: Dict[str, str] = Field(default_factory=dict)
    labels: Dict[str, str] = Field(default_factory=dict)

    @field_validator("alert", "for_", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("annotations", "labels", mode="before")
    @classmethod
    def _scalars_as_text(cls, value: Any) -> Any:
        # Unquoted YAML scalars keep their text form; nested values are rejected.
        if value is None:
            return {}
        if not isinstance(value, dict):
            return value
        return {key: _scalar_text(item) for key, item in value.items()}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Prometheus rule format, omitting empty fields."""
        rule: Dict[str, Any] = {"expr": self.expr}
        if self.alert:
            rule["alert"] = self.alert
        if self.for_:
            rule["for"] = self.for_
        if self.annotations:
            rule["annotations"] = dict(self.annotations)
        if self.labels:
            rule["labels"] = dict(self.labels)
        return rule

    def __repr__(self) -> str:
        return f"Rule(alert={self.alert!r}, expr={self.expr!r}, for={self.for_!r})"


class RuleGroup(BaseModel):
    """
    A rule group as addressed by the ruler.

    Groups built by alertsync always hold exactly one rule and are named
    after the alert definition's UUID.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, coerce_numbers_to_str=True)

    name: str = ""
    interval: str = ""
    source_tenants: List[str] = Field(default_factory=list)
    rules: List[Rule] = Field(default_factory=list)

    @field_validator("interval", "source_tenants", "rules", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any, info: Any) -> Any:
        if value is None:
            return "" if info.field_name == "interval" else []
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to Prometheus rule group format, omitting empty fields."""
        group: Dict[str, Any] = {"name": self.name, "rules": [r.to_dict() for r in self.rules]}
        if self.interval:
            group["interval"] = self.interval
        if self.source_tenants:
            group["source_tenants"] = list(self.source_tenants)
        return group

    def __repr__(self) -> str:
        return f"RuleGroup(name={self.name!r}, interval={self.interval!r}, rules={self.rules!r})"
