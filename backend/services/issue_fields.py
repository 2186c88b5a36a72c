"""Jira issue schema used for prioritization.

The host Jira instance keeps the prioritization inputs in custom fields.
Their identifiers are fixed here and mapped onto named attributes so the rest
of the code never looks fields up by id.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import math


DUE_DATE_FIELD = "duedate"
ESTIMATE_FIELD = "customfield_10004"
IMPACT_FIELD = "customfield_19148"
USERBASE_FIELD = "customfield_19149"
STRATEGY_FIELD = "customfield_19150"
EXPERIMENT_FIELD = "customfield_19151"
TOTAL_FIELD = "customfield_19152"
EPIC_LINK_FIELD = "customfield_10008"
STATUS_FIELD = "status"

FIELD_IDS = [
    DUE_DATE_FIELD, ESTIMATE_FIELD, IMPACT_FIELD, USERBASE_FIELD,
    STRATEGY_FIELD, EXPERIMENT_FIELD, TOTAL_FIELD, EPIC_LINK_FIELD,
    STATUS_FIELD
]


def _parse_number(value) -> float:
    """Null, non-numeric and non-finite values count as zero."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _parse_date(date_str: Optional[str]) -> Optional[datetime]:
    """Parse Jira date string."""
    if not date_str:
        return None

    # duedate is a plain date; full timestamps are accepted as well
    formats = [
        "%Y-%m-%d",
        "%Y-%m-%dT%H:%M:%S.%f",
        "%Y-%m-%dT%H:%M:%S",
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue

    return None


@dataclass
class IssueFields:
    """Prioritization attributes of an issue (or epic)."""

    due_date: Optional[datetime] = None
    estimate: float = 0.0
    impact: float = 0.0
    userbase: float = 0.0
    strategy: float = 0.0
    experiment: float = 0.0
    total: float = 0.0
    epic_key: Optional[str] = None
    status: str = ""

    @classmethod
    def from_json(cls, fields: Optional[dict]) -> "IssueFields":
        fields = fields or {}
        status = fields.get(STATUS_FIELD) or {}

        return cls(
            due_date=_parse_date(fields.get(DUE_DATE_FIELD)),
            estimate=_parse_number(fields.get(ESTIMATE_FIELD)),
            impact=_parse_number(fields.get(IMPACT_FIELD)),
            userbase=_parse_number(fields.get(USERBASE_FIELD)),
            strategy=_parse_number(fields.get(STRATEGY_FIELD)),
            experiment=_parse_number(fields.get(EXPERIMENT_FIELD)),
            total=_parse_number(fields.get(TOTAL_FIELD)),
            epic_key=fields.get(EPIC_LINK_FIELD) or None,
            status=status.get("name", "") or ""
        )


@dataclass
class Issue:
    """A Jira issue as returned by the search and issue endpoints."""

    id: str
    key: str
    fields: IssueFields = field(default_factory=IssueFields)

    @classmethod
    def from_json(cls, data: dict) -> "Issue":
        return cls(
            id=str(data.get("id", "")),
            key=data.get("key", ""),
            fields=IssueFields.from_json(data.get("fields"))
        )


# Epics share the issue shape; they are only read.
Epic = Issue


@dataclass
class SearchResultPage:
    """One page of a JQL search."""

    total: int
    max_results: int
    start_at: int
    issues: list

    @classmethod
    def from_json(cls, data: dict) -> "SearchResultPage":
        return cls(
            total=data.get("total", 0),
            max_results=data.get("maxResults", 0),
            start_at=data.get("startAt", 0),
            issues=[Issue.from_json(i) for i in data.get("issues", [])]
        )


class OutcomeStatus(Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass
class ProcessingOutcome:
    """Result of scoring and updating a single issue."""

    key: str
    status: OutcomeStatus
    reason: Optional[str] = None

    @classmethod
    def updated(cls, key: str) -> "ProcessingOutcome":
        return cls(key, OutcomeStatus.UPDATED)

    @classmethod
    def unchanged(cls, key: str) -> "ProcessingOutcome":
        return cls(key, OutcomeStatus.UNCHANGED)

    @classmethod
    def failed(cls, key: str, reason: str) -> "ProcessingOutcome":
        return cls(key, OutcomeStatus.FAILED, reason)
