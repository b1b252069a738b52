"""
Alerts: results generated by a Search.

The Search, Assignee and User entities live elsewhere; alerts reference them
by id only.
"""
from __future__ import annotations

import enum
from typing import Any, Dict, List, Optional

from recordkit.config import ArchiveMode
from recordkit.domain.fields import FieldType
from recordkit.domain.model import Model
from recordkit.infrastructure.backend import Row, StorageBackend
from recordkit.query.builder import Direction
from recordkit.query.finder import ModelFinder
from recordkit.query.predicates import Comparator, date_window


class AlertState(enum.IntEnum):
    NEW = 0
    IN_PROGRESS = 1
    RESOLVED = 2


class AlertResolution(enum.IntEnum):
    NOT_AN_ISSUE = 0
    ACTION_TAKEN = 1
    TOO_OLD = 2


class AssigneeType(enum.IntEnum):
    USER = 0
    GROUP = 1


STATES: Dict[int, str] = {
    AlertState.NEW: "New",
    AlertState.IN_PROGRESS: "In Progress",
    AlertState.RESOLVED: "Resolved",
}

RESOLUTIONS: Dict[int, str] = {
    AlertResolution.NOT_AN_ISSUE: "Not an issue",
    AlertResolution.ACTION_TAKEN: "Action taken",
    AlertResolution.TOO_OLD: "Too old",
}

ASSIGNEE_TYPES: Dict[int, str] = {
    AssigneeType.USER: "User",
    AssigneeType.GROUP: "Group",
}

# User id meaning "unassigned".
NO_USER = 0


class Alert(Model):
    table = "alerts"
    pkey = "alert_id"
    fields = {
        "alert_date": (FieldType.NUMBER, None, 0),
        "assignee_type": (FieldType.ENUM, ASSIGNEE_TYPES, AssigneeType.USER),
        "assignee": (FieldType.NUMBER, None, NO_USER),
        "content": (FieldType.STRUCTURED, None, {}),
        "search_id": (FieldType.NUMBER, None, 0),
        "state": (FieldType.ENUM, STATES, AlertState.NEW),
        "resolution": (FieldType.ENUM, RESOLUTIONS, AlertResolution.NOT_AN_ISSUE),
        "escalated": (FieldType.BOOLEAN, None, False),
        "content_hash": (FieldType.STRING, None, ""),
        "renderer_data": (FieldType.STRUCTURED, None, {}),
    }

    @property
    def state_label(self) -> str:
        return self.schema.label("state", self["state"])

    @property
    def resolution_label(self) -> str:
        return self.schema.label("resolution", self["resolution"])


class AlertFinder(ModelFinder[Alert]):
    """
    Finder for Alerts.

    Accepts ``from`` / ``to`` filter options bounding ``alert_date``
    (both exclusive) in addition to column filters.
    """

    model = Alert

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        *,
        archive_mode: Optional[ArchiveMode] = None,
    ) -> None:
        super().__init__(
            backend,
            archive_mode=archive_mode,
            where_extension=date_window("alert_date", lower_key="from", upper_key="to"),
        )

    def get_active_counts(self) -> List[int]:
        """
        Counts of New and In Progress alerts, as ``[new, in_progress]``.

        States without any alert are reported as 0.
        """
        active = [AlertState.NEW, AlertState.IN_PROGRESS]
        return state_counts(self.count_by_group("state", {"state": active}), slots=len(active))

    def get_recent_search_hash_count(self, search_id: int, content_hash: str, since: int) -> int:
        """Alerts from ``search_id`` with ``content_hash`` created after ``since``."""
        return self.count_by_query(
            {
                "search_id": search_id,
                "content_hash": content_hash,
                "create_date": {Comparator.GT: since},
            }
        )

    def get_recent_search_count(self, search_id: int, since: int) -> int:
        """Alerts from ``search_id`` created after ``since``."""
        return self.count_by_query(
            {
                "search_id": search_id,
                "create_date": {Comparator.GT: since},
            }
        )

    def get_recent_search_counts(self, from_: int, to: int) -> List[Row]:
        """
        Per-Search alert counts for ``from_ <= create_date < to``.

        Returns rows of ``{"search_id": ..., "count": ...}``, largest count first.
        """
        return self.count_by_group(
            "search_id",
            {"create_date": {Comparator.GTE: from_, Comparator.LT: to}},
            sort=[("count", Direction.DESC)],
        )


def state_counts(rows: List[Dict[str, Any]], slots: int = len(STATES)) -> List[int]:
    """Reduce grouped ``{state, count}`` rows into a fixed array indexed by state."""
    counts = [0] * slots
    for row in rows:
        state = int(row["state"])
        if 0 <= state < slots:
            counts[state] = int(row["count"])
    return counts


__all__ = [
    "ASSIGNEE_TYPES",
    "Alert",
    "AlertFinder",
    "AlertResolution",
    "AlertState",
    "AssigneeType",
    "NO_USER",
    "RESOLUTIONS",
    "STATES",
    "state_counts",
]
