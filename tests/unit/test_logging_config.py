"""Unit tests for logging setup and the personal data filter."""

import logging

import pytest

from household_ledger.lib.logging_config import PersonalDataFilter, setup_logging


def _record(msg, args=None):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


@pytest.fixture
def clean_root_logger():
    """Detach root handlers for the test and restore them afterwards."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers.clear()
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.mark.unit
class TestPersonalDataFilter:
    """Test suite for PersonalDataFilter."""

    def test_masks_email(self):
        """Only the first character and the domain survive."""
        record = _record("No user registered for alice.smith@example.com")
        PersonalDataFilter().filter(record)
        assert record.msg == "No user registered for a***@example.com"

    def test_masks_card_number(self):
        """Long digit runs keep their last four digits."""
        record = _record("Card 4242424242424242 declined")
        PersonalDataFilter().filter(record)
        assert record.msg == "Card ****4242 declined"

    def test_leaves_amounts_and_ids_alone(self):
        """Amounts, dates and uuids are not mistaken for card numbers."""
        message = (
            "Account 0b9f2c3e-1a2b-4c5d-8e9f-123456789012 balance -25000 JPY on 2024-05-10"
        )
        record = _record(message)
        PersonalDataFilter().filter(record)
        assert record.msg == message

    def test_masks_args(self):
        """Positional and mapping args are masked too."""
        record = _record("login %s", ("bob@example.org",))
        PersonalDataFilter().filter(record)
        assert record.args == ("b***@example.org",)

        record = _record("login %(email)s", {"email": "bob@example.org", "attempt": 2})
        PersonalDataFilter().filter(record)
        assert record.args == {"email": "b***@example.org", "attempt": 2}

    def test_keeps_record(self):
        """The filter never drops records."""
        assert PersonalDataFilter().filter(_record("Charged card c-1 with 500 JPY"))


@pytest.mark.unit
class TestSetupLogging:
    """Test suite for setup_logging."""

    def test_console_only(self, clean_root_logger):
        """An empty log file path disables the file handler."""
        setup_logging(logging.WARNING, log_file="")

        assert clean_root_logger.level == logging.WARNING
        assert len(clean_root_logger.handlers) == 1
        assert any(isinstance(f, PersonalDataFilter) for f in clean_root_logger.handlers[0].filters)

    def test_file_output_is_masked(self, clean_root_logger, tmp_path):
        """Records written to the log file pass through the filter."""
        log_file = tmp_path / "logs" / "ledger.log"
        setup_logging(logging.INFO, log_file=str(log_file))

        logging.getLogger("household_ledger.test").warning("Unknown user carol@example.net")
        for handler in clean_root_logger.handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert "c***@example.net" in content
        assert "carol@" not in content
