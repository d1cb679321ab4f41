import logging

from uvgen.core.logging_utils import (
    default_log_dir,
    format_exception_message,
    log_once,
)


def test_default_log_dir_respects_xdg_state_home(monkeypatch, tmp_path):
    monkeypatch.setattr("os.name", "posix")
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))

    assert default_log_dir() == tmp_path / "uvgen" / "logs"


def test_format_exception_message_mentions_log_file(tmp_path):
    log_path = tmp_path / "uvgen.log"

    msg = format_exception_message("Unwrap failed", "boom", log_path=log_path)

    assert msg.startswith("Unwrap failed")
    assert "boom" in msg
    assert str(log_path) in msg
    assert format_exception_message("Unwrap failed", "boom", log_path=None).endswith("boom")


def test_log_once_emits_a_key_only_once(caplog):
    logger = logging.getLogger("uvgen.tests.log_once")
    key = "tests:log_once:unique"

    with caplog.at_level(logging.WARNING, logger=logger.name):
        assert log_once(logger, key, logging.WARNING, "first %s", "call") is True
        assert log_once(logger, key, logging.WARNING, "second call") is False

    messages = [r.getMessage() for r in caplog.records if r.name == logger.name]
    assert messages == ["first call"]
