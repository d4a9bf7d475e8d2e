"""Tests for common/config_loader.py.

YAML 加载与日志初始化测试。
"""

from __future__ import annotations

import logging
from pathlib import Path

from common.config_loader import CONFIG_DIR, load_yaml, setup_logging_from_yaml


class TestLoadYaml:
    """Read YAML files into dicts."""

    def test_missing_file_is_empty(self, tmp_path: Path):
        assert load_yaml(tmp_path / "absent.yaml") == {}

    def test_empty_file_is_empty(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_yaml(path) == {}

    def test_bundled_logging_config(self):
        config = load_yaml(CONFIG_DIR / "logging.yaml")
        assert config["version"] == 1
        assert "console" in config["handlers"]


class TestSetupLogging:
    """Configure logging from YAML with overrides."""

    def test_level_and_file_override(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "test.log"
        setup_logging_from_yaml(
            log_level_override="warning",
            log_file_override=log_file,
        )
        assert logging.getLogger().level == logging.WARNING
        assert log_file.parent.exists()

    def test_handler_directory_created(self, tmp_path: Path):
        config = tmp_path / "logging.yaml"
        config.write_text(
            "version: 1\n"
            "disable_existing_loggers: false\n"
            "handlers:\n"
            "  file:\n"
            "    class: logging.FileHandler\n"
            f"    filename: {tmp_path / 'nested' / 'app.log'}\n"
            "root:\n"
            "  level: INFO\n"
            "  handlers: [file]\n",
            encoding="utf-8",
        )
        setup_logging_from_yaml(config_path=config)
        assert (tmp_path / "nested").is_dir()
        assert logging.getLogger().level == logging.INFO
