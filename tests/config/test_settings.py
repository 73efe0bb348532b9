"""
Tests for stock_config: YAML loading, overlays, environment overrides,
validation of unknown keys, and the config-to-kernel bridges.
"""

import pytest
import yaml

from stock_config import get_active_settings, reset_settings
from stock_config.bridges import bootstrap, to_lot_validation_policy
from stock_config.loader import deep_merge, load_yaml_file
from stock_config.settings import (
    ENV_DATABASE_URL,
    ENV_LOG_LEVEL,
    StockSettings,
    load_settings,
)
from stock_kernel.db.engine import get_engine, reset_engine
from stock_kernel.domain.policy import LotValidationPolicy


def _write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


@pytest.fixture
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


class TestLoader:

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_yaml_file(path)

    def test_deep_merge_keeps_sibling_keys(self):
        merged = deep_merge(
            {"database": {"url": "a", "echo": False}, "logging": {"level": "INFO"}},
            {"database": {"echo": True}},
        )
        assert merged == {
            "database": {"url": "a", "echo": True},
            "logging": {"level": "INFO"},
        }


class TestLoadSettings:

    def test_packaged_defaults(self):
        settings = load_settings(environ={})

        assert settings == StockSettings()
        assert settings.database.url == "postgresql://localhost/stockbook"
        assert settings.validation.min_purchase_year == 2000
        assert settings.validation.max_future_months == 12
        assert settings.logging.level == "INFO"

    def test_user_file_overlays_defaults(self, tmp_path):
        path = _write_yaml(tmp_path / "stockbook.yaml", {
            "database": {"pool_size": 3},
            "validation": {"max_future_months": 6},
        })

        settings = load_settings(path, environ={})

        assert settings.database.pool_size == 3
        assert settings.database.max_overflow == 10
        assert settings.validation.max_future_months == 6

    def test_environment_wins(self, tmp_path):
        path = _write_yaml(tmp_path / "stockbook.yaml", {
            "database": {"url": "postgresql://file/db"},
        })

        settings = load_settings(path, environ={
            ENV_DATABASE_URL: "sqlite://",
            ENV_LOG_LEVEL: "debug",
        })

        assert settings.database.url == "sqlite://"
        assert settings.logging.level == "debug"

    def test_unknown_key_rejected(self, tmp_path):
        path = _write_yaml(tmp_path / "stockbook.yaml", {
            "validation": {"max_future_month": 6},
        })
        with pytest.raises(ValueError, match="Unknown keys in 'validation'"):
            load_settings(path, environ={})

    def test_unknown_section_rejected(self, tmp_path):
        path = _write_yaml(tmp_path / "stockbook.yaml", {"pricing": {}})
        with pytest.raises(ValueError, match="Unknown settings sections"):
            load_settings(path, environ={})

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValueError, match="logging.level"):
            load_settings(environ={ENV_LOG_LEVEL: "LOUD"})

    def test_negative_future_window_rejected(self, tmp_path):
        path = _write_yaml(tmp_path / "stockbook.yaml", {
            "validation": {"max_future_months": -1},
        })
        with pytest.raises(ValueError, match="max_future_months"):
            load_settings(path, environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml", environ={})


class TestActiveSettings:

    def test_cached_until_reset(self, tmp_path, _fresh_settings):
        first_path = _write_yaml(tmp_path / "a.yaml", {"database": {"pool_size": 2}})
        second_path = _write_yaml(tmp_path / "b.yaml", {"database": {"pool_size": 7}})

        first = get_active_settings(first_path)
        assert get_active_settings(second_path) is first

        reset_settings()
        assert get_active_settings(second_path).database.pool_size == 7


class TestBridges:

    def test_validation_policy(self, tmp_path):
        path = _write_yaml(tmp_path / "stockbook.yaml", {
            "validation": {"min_purchase_year": 2010, "max_future_months": 3},
        })
        policy = to_lot_validation_policy(load_settings(path, environ={}))

        assert policy == LotValidationPolicy(
            min_purchase_year=2010,
            max_future_months=3,
            max_quantity=9_007_199_254_740,
        )

    def test_bootstrap_initializes_engine(self):
        settings = load_settings(environ={ENV_DATABASE_URL: "sqlite://"})
        try:
            bootstrap(settings)
            assert get_engine().dialect.name == "sqlite"
        finally:
            reset_engine()
