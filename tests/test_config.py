# tests/test_config.py

import pytest

from batch_table_upgrade import Config


def test_defaults():
    cfg = Config()
    assert cfg.strict_array_length is True
    assert cfg.max_diagnostic_events == 200
    assert cfg.embed_buffers is True
    assert cfg.echo_log is False


def test_to_dict_reflects_values():
    cfg = Config(strict_array_length=False, max_diagnostic_events=5, embed_buffers=False, echo_log=True)
    assert cfg.to_dict() == {
        "strict_array_length": False,
        "max_diagnostic_events": 5,
        "embed_buffers": False,
        "echo_log": True,
    }
    assert "max_diagnostic_events=5" in repr(cfg)


def test_negative_event_cap_is_rejected():
    with pytest.raises(ValueError):
        Config(max_diagnostic_events=-1)
