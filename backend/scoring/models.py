"""
models.py — Typed roster, configuration and result records.

Inputs (learners, assessment records, grading configuration) are frozen
pydantic models so a single configuration value can be threaded through
every engine function without being mutated along the way. Results are
recomputed on every call and never persisted.
"""

from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from scoring.policy import CORE_SUBJECTS, DEFAULT_POLICY, GradingPolicy, default_scale_rows


def clamp_score(value: float, maximum: float) -> float:
    """Clamp a raw mark into [0, maximum]."""
    return max(0.0, min(float(maximum), float(value)))


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class DistributionModel(str, Enum):
    AUTO = "Auto"
    T_DIST = "T-Dist"
    NORMAL = "Normal"


# ── Grading scale ───────────────────────────────────────────────────

class GradingScaleEntry(_Frozen):
    grade: str
    value: int = Field(..., ge=1)
    z_score: float
    remark: str = ""
    color: str = "#94a3b8"


def default_grading_scale() -> Tuple[GradingScaleEntry, ...]:
    return tuple(GradingScaleEntry(**row) for row in default_scale_rows())


class AssessmentWeights(_Frozen):
    """Percent weights per component. Expected to sum to 100; not enforced."""

    exercises: float = Field(20.0, ge=0)
    cats: float = Field(30.0, ge=0)
    terminal: float = Field(50.0, ge=0)


# ── Assessment records ──────────────────────────────────────────────

class ExerciseEntry(_Frozen):
    subject: str
    week: int = 1
    type: Literal["classwork", "homework"] = "classwork"
    max_score: float = Field(1.0, gt=0)
    pupil_scores: Dict[str, float] = Field(default_factory=dict)

    @field_validator("pupil_scores")
    @classmethod
    def _clamp_to_max(cls, scores: Dict[str, float], info: ValidationInfo) -> Dict[str, float]:
        max_score = info.data.get("max_score")
        if max_score is None:
            return scores
        return {learner_id: clamp_score(v, max_score) for learner_id, v in scores.items()}


class CatComponent(_Frozen):
    marks: float = Field(20.0, gt=0)
    scores: Dict[str, float] = Field(default_factory=dict)

    @field_validator("scores")
    @classmethod
    def _clamp_to_marks(cls, scores: Dict[str, float], info: ValidationInfo) -> Dict[str, float]:
        marks = info.data.get("marks")
        if marks is None:
            return scores
        return {learner_id: clamp_score(v, marks) for learner_id, v in scores.items()}

    def with_score(self, learner_id: str, score: float) -> "CatComponent":
        """Record a score for one learner, clamped to this component's marks."""
        return CatComponent(marks=self.marks, scores={**self.scores, learner_id: score})


class ContinuousAssessmentConfig(_Frozen):
    """Three CAT components for one class + subject."""

    cat1: CatComponent = Field(default_factory=lambda: CatComponent(marks=DEFAULT_POLICY.default_cat_maxima[0]))
    cat2: CatComponent = Field(default_factory=lambda: CatComponent(marks=DEFAULT_POLICY.default_cat_maxima[1]))
    cat3: CatComponent = Field(default_factory=lambda: CatComponent(marks=DEFAULT_POLICY.default_cat_maxima[2]))

    @model_validator(mode="before")
    @classmethod
    def _default_marks(cls, data):
        # A component given without marks takes its slot's default maximum.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for slot, default_marks in zip(("cat1", "cat2", "cat3"), DEFAULT_POLICY.default_cat_maxima):
            component = data.get(slot)
            if isinstance(component, dict) and component.get("marks") in (None, 0):
                data[slot] = {**component, "marks": default_marks}
        return data

    def components(self) -> Tuple[CatComponent, CatComponent, CatComponent]:
        return self.cat1, self.cat2, self.cat3


class TerminalConfig(_Frozen):
    section_a_max: float = Field(DEFAULT_POLICY.default_terminal_maxima[0], ge=0)
    section_b_max: float = Field(DEFAULT_POLICY.default_terminal_maxima[1], ge=0)

    @model_validator(mode="after")
    def _positive_total(self):
        if self.section_a_max + self.section_b_max <= 0:
            raise ValueError("Terminal section maxima must sum to more than 0.")
        return self


class TerminalScoreDetail(_Frozen):
    objective: float = Field(0.0, ge=0)  # Section A
    theory: float = Field(0.0, ge=0)     # Section B
    remark: str = ""


class Learner(_Frozen):
    id: str
    name: str
    current_class: str = ""
    is_fees_cleared: bool = False
    score_details: Dict[str, TerminalScoreDetail] = Field(default_factory=dict)
    final_remark: Optional[str] = None
    recommendation: Optional[str] = None


# ── Configuration ───────────────────────────────────────────────────

class GradingConfig(_Frozen):
    weights: AssessmentWeights = Field(default_factory=AssessmentWeights)
    grading_scale: Tuple[GradingScaleEntry, ...] = Field(default_factory=default_grading_scale)
    distribution_model: DistributionModel = DistributionModel.AUTO
    # 0 means "use policy.science_raw_basis"
    science_threshold: int = Field(0, ge=0)
    # class name -> terminal section maxima
    terminal_configs: Dict[str, TerminalConfig] = Field(default_factory=dict)
    # class name -> subject -> CAT configuration
    cat_configs: Dict[str, Dict[str, ContinuousAssessmentConfig]] = Field(default_factory=dict)
    exercise_entries: Tuple[ExerciseEntry, ...] = ()
    # grade label -> institution remark
    remark_overrides: Dict[str, str] = Field(default_factory=dict)
    core_subjects: Tuple[str, ...] = tuple(CORE_SUBJECTS)
    facilitator_mapping: Dict[str, str] = Field(default_factory=dict)
    policy: GradingPolicy = DEFAULT_POLICY

    @field_validator("grading_scale")
    @classmethod
    def _check_scale(cls, scale: Tuple[GradingScaleEntry, ...]) -> Tuple[GradingScaleEntry, ...]:
        if len(scale) < 1:
            raise ValueError("Grading scale must contain at least one entry.")
        for better, worse in zip(scale, scale[1:]):
            if worse.z_score >= better.z_score:
                raise ValueError(
                    f"Grading scale cut-offs must be strictly descending: "
                    f"{better.grade} ({better.z_score}) is not above {worse.grade} ({worse.z_score})."
                )
        return scale

    def is_core(self, subject: str) -> bool:
        return subject in self.core_subjects

    @property
    def effective_science_threshold(self) -> int:
        return self.science_threshold or self.policy.science_raw_basis


# ── Results ─────────────────────────────────────────────────────────

class ClassStatistics(_Frozen):
    mean: float = 0.0
    std_dev: float = 0.0


class ResolvedGrade(_Frozen):
    grade: str
    value: int
    remark: str
    color: str
    # z-score after any small-sample correction; None when the spread is zero
    z_score: Optional[float] = None


class ComputedSubjectScore(_Frozen):
    subject: str
    score: int
    grade: str
    grade_value: int
    interpretation: str
    color: str
    class_mean: float
    is_core: bool
    facilitator: str = "N/A"
    remark: str = ""
    section_a: float = 0.0
    section_b: float = 0.0


class AggregateOutcome(_Frozen):
    aggregate: int
    category_code: str
    category: str
    complete_subject_load: bool = True
    rank: int = 0


class RankedLearner(_Frozen):
    serial: int
    learner_id: str
    name: str
    current_class: str
    is_fees_cleared: bool
    class_size: int
    computed_scores: List[ComputedSubjectScore]
    outcome: AggregateOutcome
    overall_remark: str
    recommendation: str
