"""
ranking.py — Best-N aggregate, category band and roster rank.

Aggregate = sum of grade points of the best ``core_count`` core subjects and
the best ``elective_count`` electives (lower is better; 6..54 on the default
scale). Learners without enough subjects in either group get the policy's
sentinel aggregate instead of a partial sum.
"""

from typing import List, Sequence, Tuple

from scoring.models import AggregateOutcome, ComputedSubjectScore, RankedLearner
from scoring.policy import GradingPolicy


def select_best_subjects(
    computed: Sequence[ComputedSubjectScore], policy: GradingPolicy
) -> Tuple[List[ComputedSubjectScore], List[ComputedSubjectScore]]:
    """
    Best-graded core and elective subjects.

    ``sorted`` is stable, so equal grade points keep the incoming order,
    which the class processor has already sorted by score descending.
    """
    cores = sorted((c for c in computed if c.is_core), key=lambda c: c.grade_value)
    electives = sorted((c for c in computed if not c.is_core), key=lambda c: c.grade_value)
    return cores[:policy.core_count], electives[:policy.elective_count]


def categorize_aggregate(aggregate: int, policy: GradingPolicy) -> Tuple[str, str]:
    """(code, label) of the first band whose upper bound covers the aggregate."""
    for upper, code, label in policy.category_bands:
        if aggregate <= upper:
            return code, label
    return policy.fallback_category


def compute_aggregate_outcome(
    computed: Sequence[ComputedSubjectScore], policy: GradingPolicy
) -> AggregateOutcome:
    """Aggregate and category for one learner. Rank is assigned by rank_roster."""
    cores, electives = select_best_subjects(computed, policy)
    complete = len(cores) == policy.core_count and len(electives) == policy.elective_count
    if complete:
        aggregate = sum(c.grade_value for c in cores) + sum(e.grade_value for e in electives)
    else:
        aggregate = policy.sentinel_aggregate

    code, label = categorize_aggregate(aggregate, policy)
    return AggregateOutcome(
        aggregate=aggregate,
        category_code=code,
        category=label,
        complete_subject_load=complete,
    )


def rank_roster(records: Sequence[RankedLearner]) -> List[RankedLearner]:
    """Sort ascending by aggregate and number the positions from 1. Ties keep roster order."""
    ordered = sorted(records, key=lambda r: r.outcome.aggregate)
    ranked = []
    for position, record in enumerate(ordered, start=1):
        outcome = record.outcome.model_copy(update={"rank": position})
        ranked.append(record.model_copy(update={"outcome": outcome}))
    return ranked
