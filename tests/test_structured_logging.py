"""Tests for the structured logging baseline and event taxonomy."""

import logging

import pytest
from backend.app.core.logging import (
    EVENT_CATALOG_FALLBACK,
    EVENT_CATALOG_FETCHED,
    EVENT_LLM_CALL_FAILURE,
    EVENT_LLM_CALL_START,
    EVENT_LLM_CALL_SUCCESS,
    EVENT_MODELS_EXHAUSTED,
    EVENT_PLAN_GENERATED,
    EVENT_PLAN_PARSE_FAILED,
    EVENT_PLAN_REPAIR_FAILED,
    EVENT_PLAN_REPAIR_STARTED,
    EVENT_PLAN_REPAIR_SUCCEEDED,
    EVENT_PROMPT_ASSEMBLED,
    log_event,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------


class TestLogEventFormat:
    def test_log_event_emits_event_name(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.component")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "test_event", key="value")
        assert "test_event: key=value" in caplog.text

    def test_log_event_without_kwargs(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.component")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "bare_event")
        assert caplog.records[0].getMessage() == "bare_event"

    def test_log_event_component_in_record(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("backend.app.services.generation")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "test_event")
        assert any(r.name == "backend.app.services.generation" for r in caplog.records)

    def test_log_event_warning_level(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.warn")
        with caplog.at_level(logging.WARNING):
            log_event(test_logger, "warning", "warn_event", detail="x")
        assert caplog.records[0].levelname == "WARNING"

    def test_unknown_level_falls_back_to_info(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.fallback")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "not_a_level", "odd_event")
        assert caplog.records[0].levelname == "INFO"


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------


class TestEventTaxonomy:
    def test_event_names_are_snake_case_and_unique(self) -> None:
        events = [
            EVENT_CATALOG_FETCHED,
            EVENT_CATALOG_FALLBACK,
            EVENT_PROMPT_ASSEMBLED,
            EVENT_LLM_CALL_START,
            EVENT_LLM_CALL_SUCCESS,
            EVENT_LLM_CALL_FAILURE,
            EVENT_MODELS_EXHAUSTED,
            EVENT_PLAN_PARSE_FAILED,
            EVENT_PLAN_REPAIR_STARTED,
            EVENT_PLAN_REPAIR_SUCCEEDED,
            EVENT_PLAN_REPAIR_FAILED,
            EVENT_PLAN_GENERATED,
        ]
        assert len(set(events)) == len(events)
        for name in events:
            assert name == name.lower()
            assert " " not in name


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


class TestSetupLogging:
    def test_handler_added_once(self) -> None:
        setup_logging()
        setup_logging()
        root = logging.getLogger()
        ours = [h for h in root.handlers if getattr(h, "_fitplan_gen", False)]
        assert len(ours) == 1
