"""Tests for the logging formatters, handlers and helpers."""

import asyncio
import io
import json
import logging
import sys

import pytest

from exam_rag.infrastructure.logging import (
    generate_correlation_id,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from exam_rag.infrastructure.logging.config import CorrelationIdFilter
from exam_rag.infrastructure.logging.formatters import JSONFormatter, StructuredFormatter, extract_extra, get_formatter
from exam_rag.infrastructure.logging.handlers import create_console_handler, create_file_handler


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="exam_rag.modules.material.services",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Material ingested",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    def test_extract_extra(self):
        record = make_record(exam_id="exam-1", chunk_count=4)

        assert extract_extra(record) == {"exam_id": "exam-1", "chunk_count": 4}

    def test_structured_formatter(self):
        output = StructuredFormatter().format(make_record(exam_id="exam-1", chunk_count=4))

        assert "level=INFO" in output
        assert 'message="Material ingested"' in output
        assert 'exam_id="exam-1"' in output
        assert "chunk_count=4" in output

    def test_json_formatter(self):
        output = json.loads(JSONFormatter().format(make_record(exam_id="exam-1", detail=object())))

        assert output["level"] == "INFO"
        assert output["module"] == "exam_rag.modules.material.services"
        assert output["message"] == "Material ingested"
        assert output["exam_id"] == "exam-1"
        assert isinstance(output["detail"], str)

    def test_json_formatter_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        output = json.loads(JSONFormatter().format(record))

        assert output["exception"]["type"] == "ValueError"
        assert output["exception"]["message"] == "boom"

    @pytest.mark.parametrize("format_type", ["simple", "detailed", "structured", "json", "JSON"])
    def test_get_formatter(self, format_type):
        assert isinstance(get_formatter(format_type), logging.Formatter)

    def test_get_formatter_unknown(self):
        with pytest.raises(ValueError, match="Unknown format type"):
            get_formatter("xml")


class TestHandlers:
    def test_console_handler_without_tty(self):
        stream = io.StringIO()
        handler = create_console_handler(format_type="simple", stream=stream)

        handler.emit(make_record())

        assert stream.getvalue() == "[INFO] exam_rag.modules.material.services: Material ingested\n"

    def test_file_handler_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "logs" / "app.log"

        handler = create_file_handler(str(path), format_type="json")
        try:
            handler.emit(make_record(exam_id="exam-1"))
            handler.flush()
        finally:
            handler.close()

        line = path.read_text(encoding="utf-8").strip()
        assert json.loads(line)["exam_id"] == "exam-1"


class TestCorrelationId:
    def test_filter_attaches_correlation_id(self):
        async def unit_of_work():
            correlation_id = generate_correlation_id()
            set_correlation_id(correlation_id)
            record = make_record()
            CorrelationIdFilter().filter(record)
            return correlation_id, record

        correlation_id, record = asyncio.run(unit_of_work())

        assert record.correlation_id == correlation_id

    def test_missing_correlation_id(self):
        async def unit_of_work():
            record = make_record()
            CorrelationIdFilter().filter(record)
            return get_correlation_id(), record

        current, record = asyncio.run(unit_of_work())

        assert current is None
        assert record.correlation_id == "no-correlation"


class TestGetLogger:
    def test_detects_calling_module(self):
        assert get_logger().name == __name__

    def test_explicit_name(self):
        assert get_logger("exam_rag.custom").name == "exam_rag.custom"

    def test_extra_context_returns_adapter(self):
        logger = get_logger("exam_rag.retriever", component="retriever")

        assert isinstance(logger, logging.LoggerAdapter)
        assert logger.extra == {"component": "retriever"}
