"""Structured logging baseline and event taxonomy.

Event taxonomy (minimum set)::

    app_start              — application process starting
    config_loaded          — settings resolved successfully
    catalog_fetched        — model discovery returned usable identifiers
    catalog_fallback       — discovery failed or was empty, static list used
    prompt_assembled       — prompt built for the generation service
    llm_call_start         — generation call initiated for one candidate
    llm_call_success       — candidate returned text
    llm_call_failure       — candidate failed, moving on
    models_exhausted       — every candidate failed
    plan_parse_failed      — sanitized output did not parse
    plan_repair_started    — structural repair invoked on the last attempt
    plan_repair_succeeded  — a repair strategy produced a parseable document
    plan_repair_failed     — every repair strategy failed
    plan_generated         — a validated plan was returned

Rules:
    - Never log API keys or secrets.
    - Log identifiers, content *lengths* and bounded previews, not raw prompts.

Usage::

    from backend.app.core.logging import log_event
    log_event(logger, "warning", "llm_call_failure",
              model="gemini-pro", error_kind="model_not_found")
"""

import logging
import sys

# Canonical event names for grep-ability and observability.
EVENT_APP_START = "app_start"
EVENT_CONFIG_LOADED = "config_loaded"
EVENT_CATALOG_FETCHED = "catalog_fetched"
EVENT_CATALOG_FALLBACK = "catalog_fallback"
EVENT_PROMPT_ASSEMBLED = "prompt_assembled"
EVENT_LLM_CALL_START = "llm_call_start"
EVENT_LLM_CALL_SUCCESS = "llm_call_success"
EVENT_LLM_CALL_FAILURE = "llm_call_failure"
EVENT_MODELS_EXHAUSTED = "models_exhausted"
EVENT_PLAN_PARSE_FAILED = "plan_parse_failed"
EVENT_PLAN_REPAIR_STARTED = "plan_repair_started"
EVENT_PLAN_REPAIR_SUCCEEDED = "plan_repair_succeeded"
EVENT_PLAN_REPAIR_FAILED = "plan_repair_failed"
EVENT_PLAN_GENERATED = "plan_generated"


_HANDLER_ATTR = "_fitplan_gen"


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logger with a simple structured format.

    Safe to call multiple times — only adds the handler once.
    """
    root = logging.getLogger()
    root.setLevel(level)

    # Check if our handler is already attached
    for h in root.handlers:
        if getattr(h, _HANDLER_ATTR, False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)


def log_event(
    logger: logging.Logger,
    level: str,
    event_name: str,
    **kwargs: object,
) -> None:
    """Emit a structured log line with consistent ``event_name: key=value`` format.

    Parameters
    ----------
    logger:
        The logger instance (provides the component via ``logger.name``).
    level:
        Log level name — ``"info"``, ``"warning"``, ``"error"``, or ``"exception"``.
    event_name:
        Canonical event name (e.g. ``"llm_call_failure"``).
    **kwargs:
        Arbitrary key-value pairs appended as ``key=value``.
    """
    parts = " ".join(f"{k}={v}" for k, v in kwargs.items())
    message = f"{event_name}: {parts}" if parts else event_name
    log_fn = getattr(logger, level, logger.info)
    log_fn(message)
