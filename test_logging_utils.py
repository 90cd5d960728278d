"""Tests for the file/console logger."""

import os

from chatcut.utils.logging_utils import get_log_helper, get_logger


def test_label_picks_sanitized_log_file(tmp_path):
    logger = get_logger(verbose=False, label="edit: cut/intro?", output_dir=str(tmp_path))
    name = os.path.basename(logger.log_file)
    assert os.path.dirname(logger.log_file) == str(tmp_path)
    assert name.startswith("chatcut_edit__cut_intro_")
    assert name.endswith(".log")


def test_file_logger_writes_all_levels(tmp_path):
    log_file = tmp_path / "logs" / "session.log"
    logger = get_logger(log_file=str(log_file), verbose=False)
    logger.debug("[TEST] debug line")
    logger.warning("[TEST] warning line")
    text = log_file.read_text()
    assert "DEBUG - [TEST] debug line" in text
    assert "WARNING - [TEST] warning line" in text


def test_log_helper_prints_only_when_verbose(capsys):
    get_log_helper(None, verbose=False).info("quiet")
    get_log_helper(None, verbose=True).warning("loud")
    out = capsys.readouterr().out
    assert "quiet" not in out
    assert "[WARNING] loud" in out
