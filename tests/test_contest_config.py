"""
Tests for contest configuration views, status and scoring windows.
"""

from datetime import date, datetime, timedelta

import pytest

from contest_engine.config import Config
from contest_engine.data_models.contest import ContestConfig, ContestStatus, EligibilityMode, ScoreWeights
from contest_engine.database.models import Brigade, Category, Contest, Region
from contest_engine.services.activity import ScoringWindow
from contest_engine.utils.exceptions import ConfigurationError


def make_contest(**fields):
    defaults = dict(
        id=7, name="Spring Drive", first_day=date(2026, 5, 1), last_day=date(2026, 5, 31),
        credits_by_vote=1, credits_by_shipment=5, credits_by_unit=3,
        users_list_white=False, users_list_ids=None, leaderboard_enabled=True, show_credits=False,
    )
    defaults.update(fields)
    return Contest(**defaults)


def make_config(**fields):
    defaults = dict(
        contest_id=1, first_day=date(2026, 5, 1), last_day=date(2026, 5, 31), weights=ScoreWeights(vote=1)
    )
    defaults.update(fields)
    return ContestConfig(**defaults)


class TestFromModel:
    """Tests for ContestConfig.from_model."""

    def test_weights_and_flags(self):
        config = ContestConfig.from_model(make_contest())
        assert config.contest_id == 7
        assert config.weights == ScoreWeights(vote=1, shipment=5, unit=3)
        assert config.eligibility_mode == EligibilityMode.BLACKLIST
        assert config.show_credits is False
        assert config.leaderboard_enabled is True

    def test_listed_ids_parsed_with_spaces(self):
        config = ContestConfig.from_model(make_contest(users_list_white=True, users_list_ids=" 12, 34 ,56,"))
        assert config.is_whitelist
        assert config.listed_user_ids == frozenset({12, 34, 56})

    def test_non_numeric_listed_ids_skipped(self):
        config = ContestConfig.from_model(make_contest(users_list_ids="12, wrong1"))
        assert config.listed_user_ids == frozenset({12})

    def test_blank_list_means_no_ids(self):
        assert ContestConfig.from_model(make_contest(users_list_ids="")).listed_user_ids == frozenset()

    def test_filter_ids_from_relationships(self):
        contest = make_contest()
        contest.categories = [Category(id=3, name="School")]
        contest.regions = [Region(id=4, region_code="CA"), Region(id=5, region_code="NY")]
        contest.brigades = [Brigade(id=6, name="Snack Bags")]
        config = ContestConfig.from_model(contest)
        assert config.category_ids == frozenset({3})
        assert config.region_ids == frozenset({4, 5})
        assert config.brigade_ids == frozenset({6})


class TestContestStatus:
    """Tests for the contest lifecycle status."""

    def test_upcoming(self):
        assert make_config().status(date(2026, 4, 30)) == ContestStatus.UPCOMING

    def test_running_on_boundaries(self):
        config = make_config()
        assert config.status(date(2026, 5, 1)) == ContestStatus.RUNNING
        assert config.status(date(2026, 5, 31)) == ContestStatus.RUNNING

    def test_finished(self):
        assert make_config().status(date(2026, 6, 1)) == ContestStatus.FINISHED


class DictConfig:
    def __init__(self, values):
        self.values = values

    def get(self, key, default=None):
        return self.values.get(key, default)


class TestScoringWindow:
    """Tests for the activity scoring window."""

    def test_default_rolling_window(self):
        as_of = datetime(2026, 5, 15, 12, 0)
        start, end = ScoringWindow().bounds(make_config(), as_of)
        assert start == as_of - timedelta(days=1)
        assert end == as_of + timedelta(days=1)

    def test_contest_span_window(self):
        window = ScoringWindow(look_back=None, slack=timedelta(days=1))
        start, end = window.bounds(make_config(), datetime(2026, 5, 15, 12, 0))
        assert start == datetime(2026, 5, 1)
        assert end == datetime(2026, 6, 1)

    def test_from_config_rolling(self):
        window = ScoringWindow.from_config(DictConfig({
            'leaderboard.window_mode': 'rolling',
            'leaderboard.window_hours': 48,
            'leaderboard.slack_hours': 2,
        }))
        assert window.look_back == timedelta(hours=48)
        assert window.slack == timedelta(hours=2)

    def test_from_config_contest_mode(self):
        window = ScoringWindow.from_config(DictConfig({
            'leaderboard.window_mode': 'contest',
            'leaderboard.slack_hours': 24,
        }))
        assert window.look_back is None


    @pytest.mark.parametrize("values", [
        {'leaderboard.window_mode': 'weekly', 'leaderboard.window_hours': 24, 'leaderboard.slack_hours': 24},
        {'leaderboard.window_mode': 'rolling', 'leaderboard.window_hours': -5, 'leaderboard.slack_hours': 24},
        {'leaderboard.window_mode': 'contest', 'leaderboard.slack_hours': -1},
        {'leaderboard.window_mode': 'rolling', 'leaderboard.window_hours': 'a day', 'leaderboard.slack_hours': 24},
    ])
    def test_from_config_rejects_invalid_settings(self, values):
        with pytest.raises(ConfigurationError):
            ScoringWindow.from_config(DictConfig(values))


class TestConfigValidate:
    """Tests for environment configuration validation."""

    def test_defaults_are_valid(self):
        Config.validate()

    def test_unknown_window_mode_rejected(self, monkeypatch):
        monkeypatch.setattr(Config, 'LEADERBOARD_WINDOW_MODE', 'weekly')
        with pytest.raises(ValueError):
            Config.validate()

    def test_negative_window_rejected(self, monkeypatch):
        monkeypatch.setattr(Config, 'LEADERBOARD_WINDOW_HOURS', -1)
        with pytest.raises(ValueError):
            Config.validate()
