import json

import pytest

from config import load_config, resolve_route
from config.settings import Settings
from flow_manager import FlowLimits
from oracle import ORACLE_KEYS, QUESTION_KEY, OracleAdapter


def _write_config(path, registry):
    path.write_text(
        json.dumps(
            {
                "llm_routes": {
                    "main": {
                        "name": "main",
                        "base_url": "http://example.com",
                        "endpoint": "/chat/completions",
                        "model": "m",
                        "timeout_s": 5,
                    }
                },
                "registry": registry,
            }
        ),
        encoding="utf-8",
    )


def test_settings_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.SESSION_BACKEND == "memory"
    assert settings.SESSION_TTL_SECONDS == 86400
    limits = FlowLimits.from_settings(settings)
    assert limits.max_follow_ups == 2
    assert limits.max_questions == 30
    assert limits.soft_limit_minutes == 30
    assert limits.hard_limit_minutes == 60


def test_resolve_route_reports_missing_entries(tmp_path) -> None:
    config_path = tmp_path / "app_config.json"
    _write_config(config_path, {"a": "main", "b": "gone"})
    cfg = load_config(config_path)
    assert resolve_route(cfg, "a").model == "m"
    assert resolve_route(cfg, "a").max_retries == 2
    with pytest.raises(KeyError):
        resolve_route(cfg, "b")
    with pytest.raises(KeyError):
        resolve_route(cfg, "c")


def test_oracle_adapter_from_config(tmp_path) -> None:
    config_path = tmp_path / "app_config.json"
    _write_config(config_path, {key: "main" for key in ORACLE_KEYS})
    adapter = OracleAdapter.from_config(config_path)
    assert adapter.route(QUESTION_KEY).name == "main"


def test_oracle_adapter_requires_every_route(tmp_path) -> None:
    config_path = tmp_path / "app_config.json"
    _write_config(config_path, {QUESTION_KEY: "main"})
    with pytest.raises(KeyError):
        OracleAdapter.from_config(config_path)


def test_shipped_config_covers_oracle() -> None:
    from pathlib import Path

    shipped = Path(__file__).resolve().parents[2] / "app_config.json"
    adapter = OracleAdapter.from_config(shipped)
    assert adapter.route(QUESTION_KEY).enforce_json is False
