"""
Tests for the service-layer decorators under the application's logging setup.
"""

import logging

import pytest
from sqlalchemy.exc import OperationalError

from app.core.decorators import input_validation, service_error_handler
from app.core.exceptions import DatabaseError, ServiceException, ValidationError
from app.core.logging import setup_logging
from app.features.events.schemas import TickSampleEvent


class TelemetryHandler:
    """Handler whose argument shares its name with structlog's message argument."""

    @service_error_handler("TelemetryHandler")
    async def handle(self, event: TickSampleEvent) -> float:
        return event.ticks_per_second

    @service_error_handler("TelemetryHandler")
    async def explode(self, event: TickSampleEvent) -> None:
        raise RuntimeError("boom")

    @service_error_handler("TelemetryHandler")
    async def lose_connection(self, event: TickSampleEvent) -> None:
        raise OperationalError("INSERT INTO tick_samples", {}, Exception("gone"))

    @service_error_handler("TelemetryHandler")
    @input_validation(validate_non_empty=["actor_id"], validate_positive=["finding_id"])
    async def resolve(self, finding_id: int, actor_id: str) -> int:
        return finding_id


@pytest.fixture(autouse=True)
def configured_logging(caplog):
    setup_logging("DEBUG")
    caplog.set_level(logging.DEBUG)


def tick():
    return TickSampleEvent(type="tps_update", server="survival", tps=11.9)


class TestServiceErrorHandler:
    """Decorated methods keep working whatever their parameters are called."""

    async def test_argument_named_event_is_logged_not_clashing(self, caplog):
        assert await TelemetryHandler().handle(tick()) == 11.9
        assert "Service method called" in caplog.text
        assert "TelemetryHandler" in caplog.text

    async def test_unexpected_error_is_wrapped_with_arguments(self):
        with pytest.raises(ServiceException) as exc_info:
            await TelemetryHandler().explode(tick())

        error = exc_info.value
        assert error.operation == "explode"
        assert "survival" in error.context["arguments"]["event"]
        assert isinstance(error.original_error, RuntimeError)

    async def test_database_error_is_mapped(self):
        with pytest.raises(DatabaseError):
            await TelemetryHandler().lose_connection(tick())

    async def test_input_validation_becomes_validation_error(self):
        handler = TelemetryHandler()

        assert await handler.resolve(3, "mod-alice") == 3
        with pytest.raises(ValidationError):
            await handler.resolve(3, " ")
        with pytest.raises(ValidationError):
            await handler.resolve(-1, "mod-alice")


def test_console_rendering_can_be_selected():
    setup_logging("INFO", json_logs=False)

    assert logging.getLogger("apscheduler").level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
