"""
Unit tests for the logging setup.
"""
import pytest

from attendance.core.logging import logger, SERVICE_NAME


@pytest.mark.unit
class TestLoggingSetup:
    """Test the context attached to every log record."""

    def test_records_carry_service_and_environment(self):
        extras = []
        handler_id = logger.add(lambda message: extras.append(message.record["extra"]), level="INFO")
        try:
            logger.info("RSVP join on event e1 for user u1")
        finally:
            logger.remove(handler_id)

        assert extras[-1]["service"] == SERVICE_NAME
        assert extras[-1]["environment"] == "test"
