"""
Tests for the audit logger and logging setup.
"""

import logging

from conftest import make_draft
from expense_tracker.audit import AuditLogger, configure_logging
from expense_tracker.models.audit import AuditEventType, AuditSeverity


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_log_error_records_system_error(self):
        """Test unexpected failures are kept as system errors."""
        audit_logger = AuditLogger()
        audit_logger.log_error(
            "StorageIOError",
            "disk full",
            {"context": "Could not clear expenses"},
        )

        [event] = audit_logger.recent_events()
        assert event.event_type is AuditEventType.SYSTEM_ERROR
        assert event.severity is AuditSeverity.ERROR
        assert event.description == "System error: StorageIOError"
        assert event.error_message == "disk full"
        assert event.details == {"context": "Could not clear expenses"}

    def test_history_is_bounded_and_newest_first(self):
        """Test only the latest events are kept."""
        audit_logger = AuditLogger(history_size=2)
        for name in ("first", "second", "third"):
            audit_logger.log_error(name, "boom")

        assert [e.description for e in audit_logger.recent_events()] == [
            "System error: third",
            "System error: second",
        ]
        assert len(audit_logger.recent_events(limit=1)) == 1

    async def test_attach_and_detach(self, loaded_ledger):
        """Test ledger changes are audited until detached."""
        audit_logger = AuditLogger()
        detach = audit_logger.attach(loaded_ledger)

        expense = await loaded_ledger.add(make_draft())
        await loaded_ledger.clear_all()
        detach()
        await loaded_ledger.add(make_draft())

        events = audit_logger.recent_events()
        assert [e.event_type for e in events] == [
            AuditEventType.LEDGER_CLEARED,
            AuditEventType.EXPENSE_ADDED,
        ]
        assert events[1].entity_id == expense.id
        assert events[1].details == {"amount": "50.00"}
        assert events[0].details == {"removed_count": 1}

    def test_log_load_failed_is_a_warning(self):
        """Test degraded loads are recorded as warnings."""
        audit_logger = AuditLogger()
        audit_logger.log_load_failed("Stored ledger is not valid JSON")
        [event] = audit_logger.recent_events()
        assert event.event_type is AuditEventType.LEDGER_LOAD_FAILED
        assert event.severity is AuditSeverity.WARNING


class TestConfigureLogging:
    """Tests for the package log level."""

    def test_debug_mode(self):
        """Test debug mode lowers the package level to DEBUG."""
        package_logger = logging.getLogger("expense_tracker")
        previous = package_logger.level
        try:
            configure_logging(debug_mode=True)
            assert package_logger.level == logging.DEBUG
            assert logging.getLogger("expense_tracker.services.ledger").isEnabledFor(logging.DEBUG)

            configure_logging(debug_mode=False)
            assert package_logger.level == logging.INFO
            assert not logging.getLogger("expense_tracker.audit").isEnabledFor(logging.DEBUG)
        finally:
            package_logger.setLevel(previous)
