"""Rule group construction."""

from __future__ import annotations

from uuid import UUID

from alertsync.rules.duration import format_duration
from alertsync.rules.models import Rule, RuleGroup


def build_group(definition_id: UUID | str, interval_seconds: int, rule: Rule) -> RuleGroup:
    """Wrap a single rule into the group the ruler addresses it by.

    The group name is the definition UUID in canonical lowercase hyphenated
    form, so it stays stable while only the overrides change.

    Example:
        >>> group = build_group("01E74407-0327-4E36-93CB-85801C098BA5", 15, rule)
        >>> group.name, group.interval
        ('01e74407-0327-4e36-93cb-85801c098ba5', '15s')
    """
    if not isinstance(definition_id, UUID):
        definition_id = UUID(str(definition_id))

    return RuleGroup(
        name=str(definition_id),
        interval=format_duration(interval_seconds),
        rules=[rule],
    )
