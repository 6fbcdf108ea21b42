"""
Rule group comparison.

The ruler may echo durations in a different but equivalent notation
(``1m`` for ``1m0s``) and drops a zero ``for``. ``normalize_group``
rewrites both sides into canonical form first; ``diff_groups`` then
compares field by field and reports what differs.
"""

from __future__ import annotations

from typing import List, Mapping

from alertsync.rules.duration import format_nanoseconds, parse_nanoseconds
from alertsync.rules.models import Rule, RuleGroup


def normalize_duration_field(value: str) -> str:
    """Canonicalize a duration field; empty and zero durations become ``""``.

    Values that do not parse are returned unchanged so the difference
    still surfaces in the comparison.
    """
    if not value.strip():
        return ""
    try:
        nanoseconds = parse_nanoseconds(value)
    except ValueError:
        return value
    if nanoseconds == 0:
        return ""
    return format_nanoseconds(nanoseconds)


def normalize_rule(rule: Rule) -> Rule:
    return rule.model_copy(update={"for_": normalize_duration_field(rule.for_)})


def normalize_group(group: RuleGroup) -> RuleGroup:
    """Return ``group`` with its interval and rule ``for`` fields canonicalized."""
    return group.model_copy(
        update={
            "interval": normalize_duration_field(group.interval),
            "rules": [normalize_rule(rule) for rule in group.rules],
        }
    )


def _diff_mapping(path: str, expected: Mapping[str, str], actual: Mapping[str, str]) -> List[str]:
    differences = []
    for key in sorted(set(expected) | set(actual)):
        if key not in actual:
            differences.append(f"{path}.{key}: missing")
        elif key not in expected:
            differences.append(f"{path}.{key}: unexpected")
        elif expected[key] != actual[key]:
            differences.append(f"{path}.{key}: {expected[key]!r} != {actual[key]!r}")
    return differences


def diff_rules(path: str, expected: Rule, actual: Rule) -> List[str]:
    differences = []
    for name, label in (("alert", "alert"), ("expr", "expr"), ("for_", "for")):
        want, got = getattr(expected, name), getattr(actual, name)
        if want != got:
            differences.append(f"{path}.{label}: {want!r} != {got!r}")
    differences.extend(_diff_mapping(f"{path}.annotations", expected.annotations, actual.annotations))
    differences.extend(_diff_mapping(f"{path}.labels", expected.labels, actual.labels))
    return differences


def diff_groups(expected: RuleGroup, actual: RuleGroup) -> List[str]:
    """List the fields in which two (normalized) groups differ.

    An empty list means the groups are equal. Annotation and label maps
    are compared as unordered key/value sets.
    """
    differences = []
    for name in ("name", "interval"):
        want, got = getattr(expected, name), getattr(actual, name)
        if want != got:
            differences.append(f"{name}: {want!r} != {got!r}")

    if sorted(expected.source_tenants) != sorted(actual.source_tenants):
        differences.append(
            f"source_tenants: {expected.source_tenants!r} != {actual.source_tenants!r}"
        )

    if len(expected.rules) != len(actual.rules):
        differences.append(f"rules: {len(expected.rules)} != {len(actual.rules)} rules")
        return differences

    for index, (want, got) in enumerate(zip(expected.rules, actual.rules)):
        differences.extend(diff_rules(f"rules[{index}]", want, got))
    return differences


def groups_match(expected: RuleGroup, actual: RuleGroup) -> bool:
    """Return True if the groups are equal after normalization."""
    return not diff_groups(normalize_group(expected), normalize_group(actual))
