import os

import pytest

from holdem.logs import log_debug, log_err, log_fini, log_info, log_init, log_player_init


@pytest.fixture(autouse=True)
def _close_log():
    yield
    log_fini()


def test_player_log_lines(tmp_path):
    log_player_init(3, tmp_path)
    log_info("hello")
    log_debug("value 7")
    log_err("boom")
    log_fini()
    text = (tmp_path / "player3.logs").read_text(encoding="utf-8")
    assert text.splitlines() == ["[INFO] hello", "[DEBUG] value 7", "[ERROR] boom"]


def test_tagged_log_uses_pid(tmp_path):
    log_init("client", tmp_path)
    log_info("started")
    log_fini()
    path = tmp_path / f"client.{os.getpid()}"
    assert path.read_text(encoding="utf-8") == "[INFO] started\n"


def test_untagged_log_name(tmp_path):
    log_init(None, tmp_path)
    log_err("x")
    log_fini()
    assert (tmp_path / f"logs.{os.getpid()}").exists()


def test_no_writes_after_fini(tmp_path):
    log_player_init(0, tmp_path)
    log_info("first")
    log_fini()
    log_info("second")
    assert (tmp_path / "player0.logs").read_text(encoding="utf-8") == "[INFO] first\n"


def test_missing_directory_disables_logging(tmp_path):
    missing = tmp_path / "absent"
    log_player_init(1, missing)
    log_info("ignored")
    assert not missing.exists()


def test_reinit_truncates(tmp_path):
    log_player_init(2, tmp_path)
    log_info("old")
    log_player_init(2, tmp_path)
    log_info("new")
    log_fini()
    assert (tmp_path / "player2.logs").read_text(encoding="utf-8") == "[INFO] new\n"