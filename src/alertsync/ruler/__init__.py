"""Mimir/Cortex ruler synchronization."""

from alertsync.ruler.client import RulerClient
from alertsync.ruler.compare import diff_groups, groups_match, normalize_group
from alertsync.ruler.updater import RulerUpdater

__all__ = [
    "RulerClient",
    "RulerUpdater",
    "diff_groups",
    "groups_match",
    "normalize_group",
]
