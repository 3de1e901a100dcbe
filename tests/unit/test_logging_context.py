# tests/unit/test_logging_context.py
import logging

from app.core.logging import LOG_FORMAT, BatchContextFilter, batch_id_var


def _record() -> logging.LogRecord:
    return logging.LogRecord("qaorders.orchestrator", logging.INFO, __file__, 1, "wave done", None, None)


def test_filter_stamps_current_batch_id():
    f = BatchContextFilter()

    rec = _record()
    assert f.filter(rec)
    assert rec.batch_id == "-"

    token = batch_id_var.set("BATCH-abc")
    try:
        rec = _record()
        f.filter(rec)
    finally:
        batch_id_var.reset(token)
    assert rec.batch_id == "BATCH-abc"
    assert "[BATCH-abc] wave done" in logging.Formatter(LOG_FORMAT).format(rec)
