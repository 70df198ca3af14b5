"""
config.py — Configuration-boundary validation.

Every problem that would make grading impossible or silently wrong is
reported here, before any computation runs:
  - empty or mis-ordered grading scale
  - duplicate subjects, or a subject list with no core / no elective subject
  - scores recorded against a subject that is not being graded
"""

import logging
import os
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from scoring.errors import GradingConfigError
from scoring.models import DistributionModel, GradingConfig, Learner

logger = logging.getLogger(__name__)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "config"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def build_grading_config(
    data: Optional[Dict[str, Any]] = None,
    distribution_model: Optional[str] = None,
    science_threshold: Optional[int] = None,
) -> GradingConfig:
    """
    Build an immutable GradingConfig from plain data.

    ``distribution_model`` and ``science_threshold`` are process-level
    defaults, used only when the data does not set them.
    """
    data = dict(data or {})
    if distribution_model and "distribution_model" not in data:
        data["distribution_model"] = distribution_model
    if science_threshold is not None and "science_threshold" not in data:
        data["science_threshold"] = science_threshold
    try:
        return GradingConfig(**data)
    except ValidationError as exc:
        raise GradingConfigError(_format_validation_error(exc)) from exc
    except TypeError as exc:
        raise GradingConfigError(str(exc)) from exc


def parse_distribution_model(value: Optional[str]) -> DistributionModel:
    """Parse a model name (case-insensitive); empty means Auto."""
    if not value:
        return DistributionModel.AUTO
    for model in DistributionModel:
        if model.value.lower() == str(value).strip().lower():
            return model
    raise GradingConfigError(
        f"Unknown distribution model '{value}'. Use one of: {[m.value for m in DistributionModel]}."
    )


def env_distribution_model() -> DistributionModel:
    """DISTRIBUTION_MODEL from the environment; Auto when unset or unrecognised."""
    raw = os.getenv("DISTRIBUTION_MODEL", "")
    try:
        return parse_distribution_model(raw)
    except GradingConfigError:
        logger.warning("Ignoring DISTRIBUTION_MODEL=%r; using %s.", raw, DistributionModel.AUTO.value)
        return DistributionModel.AUTO


def env_science_threshold() -> Optional[int]:
    """SCIENCE_THRESHOLD from the environment; None when unset or not a non-negative integer."""
    raw = os.getenv("SCIENCE_THRESHOLD", "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        value = -1
    if value < 0:
        logger.warning("Ignoring SCIENCE_THRESHOLD=%r; using the policy default.", raw)
        return None
    return value


def parse_learners(rows: Iterable[Dict[str, Any]]) -> List[Learner]:
    """Build Learner records from plain dicts."""
    learners = []
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise GradingConfigError(f"Learner #{idx + 1}: expected an object, got {type(row).__name__}.")
        try:
            learners.append(Learner(**row))
        except ValidationError as exc:
            raise GradingConfigError(f"Learner #{idx + 1}: {_format_validation_error(exc)}") from exc
    return learners


def validate_subject_list(subjects: Sequence[str], config: GradingConfig) -> None:
    """Reject subject lists that can never satisfy the core/elective aggregate rule."""
    if not subjects:
        raise GradingConfigError("Subject list is empty.")

    seen = set()
    duplicates = []
    for subj in subjects:
        if subj in seen:
            duplicates.append(subj)
        seen.add(subj)
    if duplicates:
        raise GradingConfigError(f"Duplicate subjects in subject list: {sorted(set(duplicates))}.")

    cores = [s for s in subjects if config.is_core(s)]
    electives = [s for s in subjects if not config.is_core(s)]
    if not cores:
        raise GradingConfigError(
            f"No subject in {list(subjects)} is designated core "
            f"(core subjects: {list(config.core_subjects)})."
        )
    if not electives:
        raise GradingConfigError(f"Subject list {list(subjects)} contains no elective subject.")

    policy = config.policy
    if len(cores) < policy.core_count or len(electives) < policy.elective_count:
        logger.warning(
            "Subject list has %d core / %d elective subjects; best-%d/%d aggregate will fall back to %d.",
            len(cores), len(electives), policy.core_count, policy.elective_count,
            policy.sentinel_aggregate,
        )


def validate_subject_references(
    learners: Sequence[Learner], config: GradingConfig, subjects: Sequence[str]
) -> None:
    """Every subject that carries a recorded score must be in the graded subject list."""
    known = set(subjects)
    unknown: Dict[str, List[str]] = {}

    def _note(subject: str, where: str):
        if subject not in known:
            unknown.setdefault(subject, []).append(where)

    for entry in config.exercise_entries:
        _note(entry.subject, f"exercise week {entry.week}")
    roster_classes = {learner.current_class for learner in learners}
    for class_name, by_subject in config.cat_configs.items():
        if class_name not in roster_classes:
            continue
        for subject in by_subject:
            _note(subject, f"CAT config for {class_name}")
    for learner in learners:
        for subject in learner.score_details:
            _note(subject, f"terminal scores of {learner.id}")

    if unknown:
        detail = "; ".join(f"{subj} ({', '.join(sorted(set(src)))})" for subj, src in sorted(unknown.items()))
        raise GradingConfigError(f"Scores recorded for subjects outside the subject list: {detail}.")
