from __future__ import annotations

import logging

import pytest

from pdsflow.core.logger import set_level
from pdsflow_io.utils.log import ContextFormatter, get_logger


def _record(**extra) -> logging.LogRecord:
    record = logging.makeLogRecord({"name": "pdsflow_io.pdf_io", "levelname": "INFO", "msg": "Overlay merged"})
    record.__dict__.update(extra)
    return record


def test_context_formatter_appends_extra_fields() -> None:
    formatter = ContextFormatter(fmt="%(name)s - %(message)s")
    line = formatter.format(_record(pages=4, overlay_pages=4))
    assert line == "pdsflow_io.pdf_io - Overlay merged | overlay_pages=4 pages=4"


def test_context_formatter_without_extra() -> None:
    formatter = ContextFormatter(fmt="%(message)s")
    assert formatter.format(_record()) == "Overlay merged"


def test_io_loggers_share_the_package_namespace() -> None:
    logger = get_logger("excel_writer")
    assert logger.name == "pdsflow_io.excel_writer"
    assert logging.getLogger("pdsflow_io").handlers


def test_set_level_rejects_unknown_names() -> None:
    assert set_level("warning") == logging.WARNING
    with pytest.raises(ValueError):
        set_level("chatty")
    set_level("INFO")
