# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Dramatiq broker manager."""

from collections.abc import Iterator

import dramatiq
import pytest
from dramatiq.brokers.stub import StubBroker

from src.infrastructure.background.broker import BrokerManager


@pytest.fixture
def manager(monkeypatch: pytest.MonkeyPatch) -> Iterator[BrokerManager]:
    """A fresh manager in test mode; the global broker is restored after."""
    monkeypatch.setenv("DRAMATIQ_TEST_MODE", "true")
    previous = dramatiq.get_broker()
    manager = BrokerManager()
    yield manager
    manager.shutdown()
    dramatiq.set_broker(previous)


class TestBrokerManager:
    """Tests for BrokerManager."""

    def test_broker_requires_setup(self, manager: BrokerManager) -> None:
        """Test that the broker is unavailable before setup."""
        with pytest.raises(RuntimeError, match="not initialized"):
            _ = manager.broker
        assert manager.get_queue_stats() == {"status": "not_initialized"}

    def test_setup_uses_stub_broker_in_test_mode(self, manager: BrokerManager) -> None:
        """Test that test mode installs a StubBroker as the global broker."""
        broker = manager.setup()

        assert isinstance(broker, StubBroker)
        assert manager.broker is broker
        assert dramatiq.get_broker() is broker

    def test_setup_is_idempotent(self, manager: BrokerManager) -> None:
        """Test that a second setup returns the same broker."""
        assert manager.setup() is manager.setup()

    def test_queue_stats_and_shutdown(self, manager: BrokerManager) -> None:
        """Test health stats before and after shutdown."""
        manager.setup()

        assert manager.get_queue_stats() == {"broker_type": "stub", "status": "healthy"}

        manager.shutdown()

        assert manager.get_queue_stats() == {"status": "not_initialized"}
