"""
Unit Tests - Logging
"""
import structlog

from inventory_metrics.config import Settings
from inventory_metrics.config.logging import AppContext, build_processors, run_context


class TestAppContext:
    """Tests for the static application fields"""

    def test_adds_application_fields(self):
        event = AppContext("inventory-metrics", "testing", "1.0.0")(None, "info", {"event": "x"})

        assert event == {"event": "x", "app": "inventory-metrics", "env": "testing", "version": "1.0.0"}

    def test_event_fields_take_precedence(self):
        event = AppContext("inventory-metrics", "testing", "1.0.0")(None, "info", {"event": "x", "env": "local"})

        assert event["env"] == "local"

    def test_included_in_shared_processors(self):
        processors = build_processors(Settings(APP_ENV="testing"))

        contexts = [p for p in processors if isinstance(p, AppContext)]
        assert contexts[0].fields["env"] == "testing"


class TestRunContext:
    """Tests for run-scoped context binding"""

    def test_binds_run_id_and_fields(self):
        structlog.contextvars.clear_contextvars()

        with run_context(reference_date="2024-06-30") as ctx:
            bound = structlog.contextvars.get_contextvars()
            assert bound["reference_date"] == "2024-06-30"
            assert bound["run_id"] == ctx["run_id"]

        assert structlog.contextvars.get_contextvars() == {}

    def test_keeps_outer_context(self):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id="abc")

        with run_context(run_id="run-1"):
            assert structlog.contextvars.get_contextvars() == {"request_id": "abc", "run_id": "run-1"}

        assert structlog.contextvars.get_contextvars() == {"request_id": "abc"}
        structlog.contextvars.clear_contextvars()
