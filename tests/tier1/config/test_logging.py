"""Tests for logging configuration."""

import io
import json
import logging

from nested_fields.core.logging import JSONFormatter, TextFormatter, configure_logging, get_logger


def _record(message="hello", **extra):
    record = logging.LogRecord("nested_fields.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_core_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "nested_fields.test"
        assert payload["message"] == "hello"
        assert "timestamp" in payload

    def test_extra_fields_are_merged(self):
        payload = json.loads(JSONFormatter().format(_record(association="tasks", identifier=42)))
        assert payload["association"] == "tasks"
        assert payload["identifier"] == 42


class TestConfigureLogging:

    def test_json_output(self):
        stream = io.StringIO()
        configure_logging(level="DEBUG", format_type="json", stream=stream)
        try:
            get_logger("nested_fields.domain.controller").debug("added", extra={"identifier": 7})
            payload = json.loads(stream.getvalue().strip())
            assert payload["message"] == "added"
            assert payload["identifier"] == 7
        finally:
            logging.getLogger("nested_fields").handlers.clear()

    def test_text_output_and_level(self):
        stream = io.StringIO()
        configure_logging(level="WARNING", format_type="text", stream=stream)
        try:
            logger = get_logger("nested_fields.web")
            logger.info("hidden")
            logger.warning("shown")
            output = stream.getvalue()
            assert "hidden" not in output
            assert "| WARNING  | nested_fields.web | shown" in output
        finally:
            logging.getLogger("nested_fields").handlers.clear()

    def test_reconfiguring_replaces_handlers(self):
        configure_logging(stream=io.StringIO())
        configure_logging(stream=io.StringIO())
        try:
            assert len(logging.getLogger("nested_fields").handlers) == 1
            assert isinstance(logging.getLogger("nested_fields").handlers[0].formatter, TextFormatter)
        finally:
            logging.getLogger("nested_fields").handlers.clear()

    def test_controller_add_context_in_json(self, project_document):
        stream = io.StringIO()
        configure_logging(level="DEBUG", format_type="json", stream=stream)
        try:
            project_document.click_by_id("add_task")
            records = [json.loads(line) for line in stream.getvalue().splitlines()]
            inserted = [record for record in records if record["message"].startswith("Inserted")]
            assert inserted[-1]["association"] == "task"
            assert inserted[-1]["identifier"] == 1700000000001
            assert inserted[-1]["template_id"] == "task_fields_template"
        finally:
            logging.getLogger("nested_fields").handlers.clear()
