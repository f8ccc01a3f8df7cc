# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for structured logging setup."""

import json
import logging
from collections.abc import Iterator

import pytest
from pydantic import SecretStr

from src.core.config.settings import JWTSettings, Settings
from src.utils.logging import bind_context, clear_context, setup_logging


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Put the root logger back after a test reconfigures it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    clear_context()
    root.handlers = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:
    """Tests for setup_logging."""

    def test_production_renders_json_with_bound_context(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test that stdlib records are JSON lines carrying bound context."""
        setup_logging(
            Settings(
                environment="production",
                debug=False,
                log_level="INFO",
                jwt=JWTSettings(secret_key=SecretStr("a-real-secret")),
            )
        )
        bind_context(user_id="user-42")

        logging.getLogger("src.domains.program").info("Cascade started for %s", "p-1")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "Cascade started for p-1"
        assert record["user_id"] == "user-42"
        assert record["level"] == "info"
        assert record["logger"] == "src.domains.program"

    def test_noisy_loggers_are_quietened(self) -> None:
        """Test that third-party loggers are raised to WARNING."""
        setup_logging(Settings(log_level="DEBUG"))

        assert logging.getLogger("sqlalchemy").level == logging.WARNING
        assert logging.getLogger("dramatiq").level == logging.WARNING
        assert logging.getLogger("src").level == logging.DEBUG
