"""
Tests for scoring/config.py — configuration-boundary validation.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from scoring.config import (
    build_grading_config,
    env_distribution_model,
    env_science_threshold,
    parse_distribution_model,
    parse_learners,
    validate_subject_list,
    validate_subject_references,
)
from scoring.errors import GradingConfigError
from scoring.models import DistributionModel
from conftest import SUBJECTS, make_learner


class TestBuildGradingConfig:
    """Tests for build_grading_config."""

    def test_defaults(self):
        config = build_grading_config()
        assert len(config.grading_scale) == 9
        assert config.grading_scale[0].grade == "A1"
        assert config.distribution_model == DistributionModel.AUTO
        assert config.science_threshold == 0
        assert config.effective_science_threshold == 140
        assert (config.weights.exercises, config.weights.cats, config.weights.terminal) == (20, 30, 50)
        assert config.policy.sentinel_aggregate == 54

    def test_empty_scale_rejected(self):
        with pytest.raises(GradingConfigError, match="grading_scale"):
            build_grading_config({"grading_scale": []})

    def test_non_descending_scale_rejected(self):
        with pytest.raises(GradingConfigError):
            build_grading_config({"grading_scale": [
                {"grade": "A", "value": 1, "z_score": 0.5},
                {"grade": "B", "value": 2, "z_score": 0.5},
            ]})

    def test_negative_weight_rejected(self):
        with pytest.raises(GradingConfigError):
            build_grading_config({"weights": {"exercises": -5}})

    def test_zero_exercise_max_rejected(self):
        with pytest.raises(GradingConfigError):
            build_grading_config({"exercise_entries": [{"subject": "French", "max_score": 0}]})

    def test_zero_terminal_maxima_rejected(self):
        with pytest.raises(GradingConfigError):
            build_grading_config({"terminal_configs": {"Basic 9A": {"section_a_max": 0, "section_b_max": 0}}})

    def test_environment_defaults_only_fill_gaps(self):
        config = build_grading_config({"distribution_model": "Normal"}, distribution_model="T-Dist", science_threshold=100)
        assert config.distribution_model == DistributionModel.NORMAL
        assert config.science_threshold == 100

    def test_config_is_immutable(self):
        config = build_grading_config()
        with pytest.raises(Exception):
            config.science_threshold = 100

    def test_custom_policy(self):
        config = build_grading_config({"policy": {"small_sample_cutoff": 20, "sentinel_aggregate": 60}})
        assert config.policy.small_sample_cutoff == 20
        assert config.policy.sentinel_aggregate == 60
        assert config.policy.core_count == 4


class TestParseDistributionModel:
    """Tests for parse_distribution_model."""

    @pytest.mark.parametrize("raw,expected", [
        ("auto", DistributionModel.AUTO),
        ("T-Dist", DistributionModel.T_DIST),
        (" normal ", DistributionModel.NORMAL),
        ("", DistributionModel.AUTO),
        (None, DistributionModel.AUTO),
    ])
    def test_known_models(self, raw, expected):
        assert parse_distribution_model(raw) == expected

    def test_unknown_model(self):
        with pytest.raises(GradingConfigError):
            parse_distribution_model("Cauchy")


class TestParseLearners:
    """Tests for parse_learners."""

    def test_valid_rows(self):
        learners = parse_learners([
            {"id": "L1", "name": "Ama", "current_class": "Basic 9A",
             "score_details": {"French": {"objective": 20, "theory": 40}}},
        ])
        assert learners[0].score_details["French"].theory == 40

    def test_invalid_row_names_position(self):
        with pytest.raises(GradingConfigError, match="Learner #2"):
            parse_learners([{"id": "L1", "name": "Ama"}, {"name": "No id"}])

    def test_non_object_row_rejected(self):
        with pytest.raises(GradingConfigError, match="Learner #1"):
            parse_learners(["x"])


class TestEnvironmentDefaults:
    """Tests for process-level defaults read from the environment."""

    def test_unset(self, monkeypatch):
        monkeypatch.delenv("DISTRIBUTION_MODEL", raising=False)
        monkeypatch.delenv("SCIENCE_THRESHOLD", raising=False)
        assert env_distribution_model() == DistributionModel.AUTO
        assert env_science_threshold() is None

    def test_valid_values(self, monkeypatch):
        monkeypatch.setenv("DISTRIBUTION_MODEL", "t-dist")
        monkeypatch.setenv("SCIENCE_THRESHOLD", "100")
        assert env_distribution_model() == DistributionModel.T_DIST
        assert env_science_threshold() == 100

    @pytest.mark.parametrize("raw", ["abc", "-5", "1.5"])
    def test_bad_threshold_falls_back(self, monkeypatch, raw):
        monkeypatch.setenv("SCIENCE_THRESHOLD", raw)
        assert env_science_threshold() is None

    def test_bad_model_falls_back(self, monkeypatch):
        monkeypatch.setenv("DISTRIBUTION_MODEL", "Cauchy")
        assert env_distribution_model() == DistributionModel.AUTO


class TestValidateSubjects:
    """Tests for subject list and reference validation."""

    def test_valid_list(self):
        validate_subject_list(SUBJECTS, build_grading_config())

    def test_empty_list(self):
        with pytest.raises(GradingConfigError):
            validate_subject_list([], build_grading_config())

    def test_custom_core_list(self):
        config = build_grading_config({"core_subjects": ["French"]})
        validate_subject_list(["French", "Mathematics"], config)
        with pytest.raises(GradingConfigError):
            validate_subject_list(["Mathematics", "Science"], config)

    def test_exercise_subject_must_be_listed(self):
        config = build_grading_config({"exercise_entries": [{"subject": "Music", "max_score": 10}]})
        with pytest.raises(GradingConfigError, match="Music"):
            validate_subject_references([], config, SUBJECTS)

    def test_cat_configs_for_other_classes_ignored(self):
        config = build_grading_config({"cat_configs": {"Basic 7A": {"Music": {}}}})
        learners = [make_learner("L1", "Ama", {"French": 50})]
        validate_subject_references(learners, config, SUBJECTS)

    def test_cat_config_for_roster_class_checked(self):
        config = build_grading_config({"cat_configs": {"Basic 9A": {"Music": {}}}})
        learners = [make_learner("L1", "Ama", {"French": 50})]
        with pytest.raises(GradingConfigError, match="Music"):
            validate_subject_references(learners, config, SUBJECTS)
