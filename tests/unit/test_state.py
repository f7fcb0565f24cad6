"""Tests for the engine wiring."""
import logging

import pytest


class TestEngineAttach:
    """Tests for attaching the engine to a store."""

    def test_expiry_notification_reaches_log(self, caplog):
        """Test the attached notifier delivers to the service log."""
        from app.services.entity_store import EntityStore
        from app.state import Engine

        engine = Engine()
        engine.attach(EntityStore())
        caplog.set_level(logging.INFO, logger="app.state")

        engine.notifier.session_expired("Learn more about quantity surveying")

        messages = [r.getMessage() for r in caplog.records if r.name == "app.state"]
        assert messages == ["Time's up! Session finished for: Learn more about quantity surveying"]
        assert engine.notifier.recent[-1].title == "Time's up!"
        engine.detach()

    def test_detach_clears_dependencies(self):
        """Test dependencies fail once the engine is detached."""
        from app.services.entity_store import EntityStore
        from app.state import Engine, engine, get_store

        engine.attach(EntityStore())
        assert get_store() is engine.store
        engine.detach()

        with pytest.raises(RuntimeError, match="Engine not started"):
            get_store()
        assert Engine().store is None
