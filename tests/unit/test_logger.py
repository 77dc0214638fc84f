import logging

import pytest

from claimdocs.logging.logger import Log, _ContextFormatter


def _record(message: str, context: dict[str, object] | None = None) -> logging.LogRecord:
    record = logging.LogRecord("claimdocs", logging.INFO, __file__, 1, message, None, None)
    if context is not None:
        record.context = context
    return record


class TestContextFormatter:
    def test_appends_sorted_pairs(self) -> None:
        formatter = _ContextFormatter("%(message)s")

        line = formatter.format(_record("Job claimed", {"version": 2, "job_id": 7}))

        assert line == "Job claimed | job_id=7 version=2"

    def test_plain_message_without_context(self) -> None:
        formatter = _ContextFormatter("%(message)s")
        assert formatter.format(_record("Worker started", {})) == "Worker started"
        assert formatter.format(_record("Worker started")) == "Worker started"


class TestLog:
    def test_passes_context_to_records(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="claimdocs"):
            Log.info("Extraction job done", job_id=7)

        record = caplog.records[-1]
        assert record.getMessage() == "Extraction job done"
        assert record.context == {"job_id": 7}  # type: ignore[attr-defined]

    def test_configure_adds_single_handler(self) -> None:
        Log.configure("debug")
        Log.configure("info")

        logger = logging.getLogger("claimdocs")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
