"""Prioritization score calculation.

The score is a weighted sum over a 100 point budget:

    estimate  15  smaller estimates score higher (exponential decay)
    impact    15  0-3 rating
    userbase  15  0-3 rating
    strategy  20  0-3 rating, or inherited from an epic that is in progress
    due       35  rises as the due date approaches the estimated effort

The due component depends on the current time, so the same issue data can
score differently on a later run.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from services.issue_fields import IssueFields

ESTIMATE_WEIGHT = 15
IMPACT_WEIGHT = 15
USERBASE_WEIGHT = 15
STRATEGY_WEIGHT = 20
DUE_WEIGHT = 35

EPIC_IMPACT_WEIGHT = 30
EPIC_USERBASE_WEIGHT = 30
EPIC_STRATEGY_WEIGHT = 40

ESTIMATE_CONSTANT = 0.3
# Estimate (in days) that earns the full estimate weight
ESTIMATE_BASELINE = 0.1
# Due dates further out than this many estimates do not add urgency
DUE_HORIZON_FACTOR = 5
RATING_MAX = 3

EPIC_ACTIVE_STATUS = "in progress"


@dataclass
class ScoreBreakdown:
    estimate: float
    impact: float
    userbase: float
    strategy: float
    due: float

    @property
    def total(self) -> float:
        return round(self.estimate + self.impact + self.userbase + self.strategy + self.due, 2)


def estimate_score(estimate: float) -> float:
    return (ESTIMATE_CONSTANT ** estimate
            / ESTIMATE_CONSTANT ** ESTIMATE_BASELINE
            * ESTIMATE_WEIGHT)


def rating_score(rating: float, weight: float) -> float:
    return rating / RATING_MAX * weight


def is_epic_active(epic_fields: Optional[IssueFields]) -> bool:
    return epic_fields is not None and epic_fields.status.lower() == EPIC_ACTIVE_STATUS


def epic_strategy_score(epic_fields: IssueFields) -> float:
    """Strategy contribution inherited from an epic."""
    epic_impact = rating_score(epic_fields.impact, EPIC_IMPACT_WEIGHT)
    epic_userbase = rating_score(epic_fields.userbase, EPIC_USERBASE_WEIGHT)
    epic_strategy = rating_score(epic_fields.strategy, EPIC_STRATEGY_WEIGHT)

    return epic_impact + epic_userbase + epic_strategy / 100 * STRATEGY_WEIGHT


def strategy_score(fields: IssueFields, epic_fields: Optional[IssueFields] = None) -> float:
    """Issue's own strategy rating, raised to the epic's if the epic is active.

    An issue never scores less than its own manual strategy rating.
    """
    manual = rating_score(fields.strategy, STRATEGY_WEIGHT)
    if not is_epic_active(epic_fields):
        return manual

    return max(manual, epic_strategy_score(epic_fields))


def due_score(due_date: Optional[datetime], estimate: float,
              now: Optional[datetime] = None) -> float:
    """Urgency of an issue based on the days left until its due date.

    - no due date: 0
    - due within the estimated effort: full weight
    - due later than five estimates: 0
    - otherwise: estimate * (weight / days_remaining) / 2
    """
    if due_date is None:
        return 0

    if now is None:
        now = datetime.now()
    days_remaining = (due_date - now).total_seconds() / 86400

    if days_remaining <= estimate:
        return DUE_WEIGHT
    if days_remaining > estimate * DUE_HORIZON_FACTOR:
        return 0

    return estimate * (DUE_WEIGHT / days_remaining) / 2


def calculate_score_breakdown(fields: IssueFields,
                              epic_fields: Optional[IssueFields] = None,
                              now: Optional[datetime] = None) -> ScoreBreakdown:
    """Calculate each weighted component of an issue's score."""
    return ScoreBreakdown(
        estimate=estimate_score(fields.estimate),
        impact=rating_score(fields.impact, IMPACT_WEIGHT),
        userbase=rating_score(fields.userbase, USERBASE_WEIGHT),
        strategy=strategy_score(fields, epic_fields),
        due=due_score(fields.due_date, fields.estimate, now)
    )


def calculate_total(fields: IssueFields,
                    epic_fields: Optional[IssueFields] = None,
                    now: Optional[datetime] = None) -> float:
    """Calculate the rounded prioritization total of an issue."""
    return calculate_score_breakdown(fields, epic_fields, now).total
