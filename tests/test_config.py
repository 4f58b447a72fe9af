"""Tests for config and errors modules."""
import pytest

from tapengine.config import EngineConfig
from tapengine.errors import (
    InsufficientResources,
    NotFound,
    StaleSnapshot,
    TransientServerError,
    Unauthorized,
    ValidationError,
    error_for_response,
)


def test_defaults():
    cfg = EngineConfig()
    assert cfg.autosave_interval == 2.0
    assert cfg.prestige_min_stage == 50


def test_from_env():
    cfg = EngineConfig.from_env({
        "TAPENGINE_SAVE_RETRIES": "5",
        "TAPENGINE_AUTOSAVE_INTERVAL": "0.5",
        "UNRELATED": "x",
    })
    assert cfg.save_retries == 5
    assert isinstance(cfg.save_retries, int)
    assert cfg.autosave_interval == 0.5


def test_invalid_values():
    with pytest.raises(ValueError):
        EngineConfig(idle_tick_interval=0)
    with pytest.raises(ValueError):
        EngineConfig(save_retries=-1)


@pytest.mark.parametrize("status,code,cls", [
    (400, "validation", ValidationError),
    (400, "insufficient_resources", InsufficientResources),
    (404, None, NotFound),
    (401, None, Unauthorized),
    (409, None, StaleSnapshot),
    (503, "validation", TransientServerError),
    (418, None, ValidationError),
])
def test_error_for_response(status, code, cls):
    err = error_for_response(status, "msg", code)
    assert type(err) is cls
    assert err.status == status
    assert err.message == "msg"
