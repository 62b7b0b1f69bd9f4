import pytest
import structlog

from app.infrastructure.observability.logging import bind_insight_context, bind_request_context


@pytest.fixture(autouse=True)
def clean_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


def test_request_context_replaces_previous_request():
    structlog.contextvars.bind_contextvars(user_id="stale-user", insight="hoarder_tabs")

    bind_request_context("req-1", "GET", "/api/v1/insights/serial_openers")

    assert structlog.contextvars.get_contextvars() == {
        "request_id": "req-1",
        "method": "GET",
        "path": "/api/v1/insights/serial_openers",
    }


def test_insight_context_skips_unset_fields():
    bind_request_context("req-2", "GET", "/api/v1/insights/serial_openers")

    bind_insight_context("user-123", "serial_openers", period="week", start_date=None, end_date=None)

    context = structlog.contextvars.get_contextvars()
    assert context["request_id"] == "req-2"
    assert context["user_id"] == "user-123"
    assert context["insight"] == "serial_openers"
    assert context["period"] == "week"
    assert "start_date" not in context
