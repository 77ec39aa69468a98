import json

import pytest
from pydantic import ValidationError

from config import load_config, resolve_routes
from config.settings import Settings


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.PERSONA_DEFAULT == "swe-interviewer-standard"
    assert settings.TOTAL_QUESTION_BUDGET == 3


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("BATCH_SIZE", "5")
    monkeypatch.setenv("START_MODE", "single")
    settings = Settings(_env_file=None)
    assert settings.BATCH_SIZE == 5
    assert settings.START_MODE == "single"


def test_settings_reject_unknown_start_mode():
    settings = Settings(_env_file=None)
    with pytest.raises(ValidationError):
        settings.START_MODE = "streaming"


def test_routes_resolve_through_registry(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(
        json.dumps(
            {
                "llm_routes": {"main": {"name": "main", "base_url": "http://x", "model": "m"}},
                "registry": {"session_engine.follow_up": "main", "session_engine.batch": "absent"},
            }
        ),
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert resolve_routes(cfg, ["session_engine.follow_up"])["session_engine.follow_up"].model == "m"
    with pytest.raises(KeyError):
        resolve_routes(cfg, ["session_engine.batch"])
