"""
Grading routes — NRT scoring, grading and ranking endpoints.
"""

import logging

from fastapi import APIRouter, HTTPException

from scoring.components import compute_component_breakdown, compute_weighted_subject_score
from scoring.config import (
    build_grading_config,
    env_distribution_model,
    env_science_threshold,
    parse_learners,
    validate_subject_list,
    validate_subject_references,
)
from scoring.errors import GradingConfigError
from scoring.grading import get_scale_legend, resolve_grade
from scoring.models import GradingConfig, default_grading_scale
from scoring.policy import CORE_SUBJECTS, DEFAULT_POLICY
from scoring.processor import build_score_matrix, process_roster
from scoring.stats import compute_class_statistics, compute_facilitator_stats, compute_subject_summary

logger = logging.getLogger(__name__)

router = APIRouter()


def _config_from_payload(payload: dict) -> GradingConfig:
    """Build the grading config, filling unset fields from the environment."""
    try:
        return build_grading_config(
            payload.get("config") or {},
            distribution_model=env_distribution_model().value,
            science_threshold=env_science_threshold(),
        )
    except GradingConfigError as e:
        raise HTTPException(422, f"Invalid grading config: {e}")


def _roster_from_payload(payload: dict):
    """Extract learners, subjects and config; validate them together."""
    learners_data = payload.get("learners")
    subjects = payload.get("subjects")
    if not learners_data or not subjects:
        raise HTTPException(400, "Provide 'learners' and 'subjects'.")

    config = _config_from_payload(payload)
    try:
        learners = parse_learners(learners_data)
        validate_subject_list(subjects, config)
        validate_subject_references(learners, config, subjects)
    except GradingConfigError as e:
        raise HTTPException(422, str(e))
    return learners, list(subjects), config


@router.get("/scale")
async def scale():
    """Default NRT scale, core subjects and policy constants."""
    return {
        "grade_scale": get_scale_legend(default_grading_scale()),
        "core_subjects": CORE_SUBJECTS,
        "distribution_model": env_distribution_model().value,
        "science_threshold": env_science_threshold() or DEFAULT_POLICY.science_raw_basis,
        "policy": DEFAULT_POLICY.model_dump(),
    }


@router.post("/statistics")
async def statistics(payload: dict):
    """Class mean and population standard deviation of a score series."""
    scores = payload.get("scores")
    if scores is None:
        raise HTTPException(400, "No scores provided.")
    try:
        return compute_class_statistics(scores).model_dump()
    except (TypeError, ValueError):
        raise HTTPException(400, "Scores must be numeric.")


@router.post("/weighted-score")
async def weighted_score(payload: dict):
    """Composite percentage for one learner and subject, with component breakdown."""
    learner_data = payload.get("learner")
    subject = payload.get("subject")
    if not learner_data or not subject:
        raise HTTPException(400, "Provide 'learner' and 'subject'.")

    config = _config_from_payload(payload)
    try:
        learner = parse_learners([learner_data])[0]
    except GradingConfigError as e:
        raise HTTPException(422, str(e))

    return {
        "learner_id": learner.id,
        "subject": subject,
        "score": compute_weighted_subject_score(learner, subject, config),
        "components": compute_component_breakdown(learner, subject, config),
    }


@router.post("/resolve-grade")
async def grade(payload: dict):
    """Grade one score against a class mean / standard deviation."""
    missing = [k for k in ("score", "mean", "std_dev", "class_size") if payload.get(k) is None]
    if missing:
        raise HTTPException(400, f"Missing fields: {missing}.")

    try:
        score = float(payload["score"])
        mean = float(payload["mean"])
        std_dev = float(payload["std_dev"])
        class_size = int(payload["class_size"])
    except (TypeError, ValueError):
        raise HTTPException(400, "score, mean and std_dev must be numbers; class_size an integer.")

    config = _config_from_payload(payload)
    result = resolve_grade(score, mean, std_dev, config.grading_scale, config, class_size)
    return result.model_dump()


@router.post("/process-roster")
async def roster(payload: dict):
    """Grade, aggregate and rank a whole class."""
    learners, subjects, config = _roster_from_payload(payload)
    ranked = process_roster(learners, config, subjects)
    logger.info("Processed roster of %d learners", len(ranked))
    return {
        "class_size": len(ranked),
        "subjects": subjects,
        "learners": [r.model_dump() for r in ranked],
    }


@router.post("/facilitator-stats/{subject}")
async def facilitator_stats(subject: str, payload: dict):
    """Grade distribution and performance index for one subject's facilitator."""
    learners, subjects, config = _roster_from_payload(payload)
    if subject not in subjects:
        raise HTTPException(404, f"Subject '{subject}' not found in subject list.")
    return compute_facilitator_stats(learners, config, subject)


@router.post("/subject-summary")
async def subject_summary(payload: dict):
    """Per-subject spread and correlations of weighted scores."""
    learners, subjects, config = _roster_from_payload(payload)
    matrix = build_score_matrix(learners, config, subjects)
    return compute_subject_summary(matrix, config)
