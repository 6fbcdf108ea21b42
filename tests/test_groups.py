"""Tests for rule group construction."""

from uuid import UUID

import pytest
from alertsync.domain.models import ParameterOverrides
from alertsync.rules.codec import build_rule
from alertsync.rules.groups import build_group
from alertsync.rules.models import Rule


@pytest.fixture
def rule():
    return Rule(alert="A", expr="up == 0")


def test_group_named_after_definition(definition_id, rule):
    group = build_group(definition_id, 15, rule)

    assert group.name == "01e74407-0327-4e36-93cb-85801c098ba5"
    assert group.interval == "15s"
    assert group.rules == [rule]


def test_uppercase_string_id_is_canonicalized(rule):
    group = build_group("01E74407-0327-4E36-93CB-85801C098BA5", 60, rule)

    assert group.name == "01e74407-0327-4e36-93cb-85801c098ba5"
    assert group.interval == "1m0s"


def test_invalid_id(rule):
    with pytest.raises(ValueError):
        build_group("not-a-uuid", 15, rule)


def test_name_stable_across_overrides(definition_id, ram_template):
    first = build_group(definition_id, 15, build_rule(ram_template, ParameterOverrides(threshold=1)))
    second = build_group(
        definition_id, 15, build_rule(ram_template, ParameterOverrides(threshold=2, enabled=False))
    )

    assert first.name == second.name
    assert first.rules != second.rules


def test_end_to_end_scenario(ram_template):
    rule = build_rule(ram_template, ParameterOverrides(threshold=100))
    group = build_group(UUID("01e74407-0327-4e36-93cb-85801c098ba5"), 15, rule)

    assert group.to_dict() == {
        "name": "01e74407-0327-4e36-93cb-85801c098ba5",
        "interval": "15s",
        "rules": [
            {
                "alert": "ClusterRAMUsageExceedsThreshold",
                "expr": "x > 100",
                "for": "30s",
                "labels": {"threshold": "100"},
            }
        ],
    }
