"""Tests for sequential model fallback within one generation call."""

import logging

import pytest
from backend.app.models.llm import (
    GenerationFailure,
    GenerationRequest,
    GenerationSuccess,
    ModelCandidate,
    ServiceErrorKind,
)
from backend.app.services.gemini_client import GenerationServiceError
from backend.app.services.generation import attempt_generation

REQUEST = GenerationRequest(prompt_text="Make me a plan", max_output_tokens=256)


class _ScriptedService:
    """Each model either returns its text or raises its scripted error."""

    def __init__(self, script: dict[str, str | GenerationServiceError]) -> None:
        self._script = script
        self.calls: list[str] = []

    async def list_models(self) -> list:
        return []

    async def generate(self, model: str, request: GenerationRequest) -> str:
        self.calls.append(model)
        result = self._script[model]
        if isinstance(result, GenerationServiceError):
            raise result
        return result


def _candidates(*names: str) -> list[ModelCandidate]:
    return [ModelCandidate(identifier=n, rank=i) for i, n in enumerate(names)]


def _not_found(model: str) -> GenerationServiceError:
    return GenerationServiceError(
        ServiceErrorKind.model_not_found, f"models/{model} is not found", status_code=404,
    )


class TestAttemptGeneration:
    @pytest.mark.asyncio
    async def test_first_success_wins_and_later_candidates_untried(self) -> None:
        service = _ScriptedService({
            "A": _not_found("A"),
            "B": '{"ok": true}',
            "C": "never",
        })
        outcome = await attempt_generation(service, _candidates("A", "B", "C"), REQUEST)
        assert isinstance(outcome, GenerationSuccess)
        assert outcome.model_used == "B"
        assert outcome.raw_text == '{"ok": true}'
        assert service.calls == ["A", "B"]

    @pytest.mark.asyncio
    async def test_empty_reply_is_an_outcome(self) -> None:
        service = _ScriptedService({"A": "", "B": "never"})
        outcome = await attempt_generation(service, _candidates("A", "B"), REQUEST)
        assert isinstance(outcome, GenerationSuccess)
        assert outcome.model_used == "A"
        assert outcome.raw_text == ""
        assert service.calls == ["A"]

    @pytest.mark.asyncio
    async def test_all_fail_returns_models_exhausted(self) -> None:
        service = _ScriptedService({n: _not_found(n) for n in ("A", "B", "C")})
        outcome = await attempt_generation(service, _candidates("A", "B", "C"), REQUEST)
        assert isinstance(outcome, GenerationFailure)
        assert outcome.error.kind == "models_exhausted"
        assert outcome.error.tried == ["A", "B", "C"]
        assert outcome.error.last_error == "models/C is not found"
        assert outcome.error.last_error_kind == ServiceErrorKind.model_not_found
        assert all(f.model_unavailable for f in outcome.failures)

    @pytest.mark.asyncio
    async def test_other_failure_not_marked_unavailable(self) -> None:
        service = _ScriptedService({
            "A": GenerationServiceError(ServiceErrorKind.other, "boom"),
        })
        outcome = await attempt_generation(service, _candidates("A"), REQUEST)
        assert isinstance(outcome, GenerationFailure)
        assert outcome.failures[0].model_unavailable is False

    @pytest.mark.asyncio
    async def test_no_candidates(self) -> None:
        outcome = await attempt_generation(_ScriptedService({}), [], REQUEST)
        assert isinstance(outcome, GenerationFailure)
        assert outcome.error.tried == []

    @pytest.mark.asyncio
    async def test_unexpected_exception_propagates(self) -> None:
        class _Exploding(_ScriptedService):
            async def generate(self, model: str, request: GenerationRequest) -> str:
                raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await attempt_generation(_Exploding({}), _candidates("A"), REQUEST)

    @pytest.mark.asyncio
    async def test_logs_do_not_include_prompt(self, caplog: pytest.LogCaptureFixture) -> None:
        service = _ScriptedService({"A": _not_found("A"), "B": "{}"})
        with caplog.at_level(logging.INFO):
            await attempt_generation(service, _candidates("A", "B"), REQUEST)
        assert "llm_call_failure" in caplog.text
        assert "llm_call_success" in caplog.text
        assert REQUEST.prompt_text not in caplog.text
