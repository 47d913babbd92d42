"""
Unit tests for sessions and the AdvisoryService facade
(advisory_board/session.py, advisory_board/service.py).
"""

import asyncio

import pytest

from advisory_board.council import ConsultationOrchestrator
from advisory_board.errors import BATCH_ADVISOR_ID, ConsultationError, ErrorKind, ResponderNetworkError
from advisory_board.models import ServiceConfig
from advisory_board.service import AdvisoryService, AdvisorNotFoundError, SessionNotFoundError
from advisory_board.session import SessionStore

from conftest import ScriptedResponder, make_advisor, make_response


def build(scripts, config):
    responder = ScriptedResponder(scripts)
    return AdvisoryService(ConsultationOrchestrator(responder, config)), responder


# ---------------------------------------------------------------------------
# SessionStore
# ---------------------------------------------------------------------------


class TestSessionStore:

    def test_create_requires_advisors(self):
        with pytest.raises(ValueError):
            SessionStore().create([])

    def test_create_get_delete(self, advisors):
        store = SessionStore()
        session = store.create(advisors)

        assert session.id.startswith("session_")
        assert store.get(session.id) is session
        assert store.list() == [session]
        assert store.delete(session.id) is True
        assert store.get(session.id) is None
        assert store.delete(session.id) is False

    def test_replace_response_keeps_one_per_advisor(self, advisors):
        session = SessionStore().create(advisors)
        consultation_round = session.start_round("Q?")
        consultation_round.responses = [make_response("A", "X", "old", advisor_id="a")]
        consultation_round.summary = "stale"

        consultation_round.replace_response(make_response("A", "X", "new", advisor_id="a"))
        consultation_round.replace_response(make_response("B", "X", "first", advisor_id="b"))

        assert [(r.advisor_id, r.content) for r in consultation_round.responses] == [
            ("a", "new"), ("b", "first"),
        ]
        assert consultation_round.summary is None


# ---------------------------------------------------------------------------
# submit_consultation
# ---------------------------------------------------------------------------


class TestSubmit:

    @pytest.mark.asyncio
    async def test_round_records_responses_and_analysis(self, advisors, fast_config):
        service, _ = build({}, fast_config)
        session = service.create_session(advisors)

        responses = await service.submit_consultation(session.id, "How should we price the launch?")

        assert len(responses) == 3
        current = service.get_session(session.id).current_round
        assert current.prompt == "How should we price the launch?"
        assert current.responses == responses
        assert current.errors == []
        assert current.analysis.domain == "productboard"
        assert current.analysis.context.session_id == session.id

    @pytest.mark.asyncio
    async def test_partial_failure_recorded_on_round(self, advisors, fast_config):
        service, _ = build({"b": [ResponderNetworkError("down")]}, fast_config)
        session = service.create_session(advisors)

        responses = await service.submit_consultation(session.id, "Q?")

        assert [r.advisor_id for r in responses] == ["a", "c"]
        assert [e.advisor_id for e in session.current_round.errors] == ["b"]

    @pytest.mark.asyncio
    async def test_total_failure_raises_and_keeps_causes(self, advisors, fast_config):
        failure = ResponderNetworkError("down")
        service, _ = build({"a": [failure], "b": [failure], "c": [failure]}, fast_config)
        session = service.create_session(advisors)

        with pytest.raises(ConsultationError) as exc_info:
            await service.submit_consultation(session.id, "Q?")

        assert exc_info.value.advisor_id == BATCH_ADVISOR_ID
        assert len(session.current_round.errors) == 3
        assert session.current_round.responses == []

    @pytest.mark.asyncio
    async def test_empty_prompt_rejected(self, advisors, fast_config):
        service, responder = build({}, fast_config)
        session = service.create_session(advisors)

        with pytest.raises(ConsultationError) as exc_info:
            await service.submit_consultation(session.id, "   ")

        assert exc_info.value.kind == ErrorKind.PERSONA_ERROR
        assert responder.calls == []
        assert session.rounds == []

    @pytest.mark.asyncio
    async def test_follow_up_sees_previous_questions(self, advisors, fast_config):
        service, _ = build({}, fast_config)
        session = service.create_session(advisors)

        await service.submit_consultation(session.id, "How should we price the launch?")
        await service.submit_consultation(session.id, "Also, what about the roadmap?")

        assert len(session.rounds) == 2
        context = session.current_round.analysis.context
        assert context.previous_questions == ["How should we price the launch?"]
        assert "also" in context.follow_up_indicators

    @pytest.mark.asyncio
    async def test_unknown_session(self, fast_config):
        service, _ = build({}, fast_config)
        with pytest.raises(SessionNotFoundError):
            await service.submit_consultation("session_missing", "Q?")


# ---------------------------------------------------------------------------
# retry_advisor
# ---------------------------------------------------------------------------


class TestRetry:

    @pytest.mark.asyncio
    async def test_retry_fills_failed_slot(self, advisors, fast_config):
        failure = ResponderNetworkError("down")
        service, _ = build({"b": [failure, failure, "B recovered"]}, fast_config)
        session = service.create_session(advisors)
        await service.submit_consultation(session.id, "Q?")

        response = await service.retry_advisor(session.id, "b")

        assert response.content == "B recovered"
        current = session.current_round
        assert sorted(r.advisor_id for r in current.responses) == ["a", "b", "c"]
        assert current.errors == []

    @pytest.mark.asyncio
    async def test_retry_replaces_exactly_one_response(self, advisors, fast_config):
        service, _ = build({"a": ["first", "second"]}, fast_config)
        session = service.create_session(advisors)
        await service.submit_consultation(session.id, "Q?")
        before = {r.advisor_id: r for r in session.responses}

        await service.retry_advisor(session.id, "a")

        after = {r.advisor_id: r for r in session.responses}
        assert len(session.responses) == 3
        assert after["a"].content == "second"
        assert after["b"] is before["b"]
        assert after["c"] is before["c"]

    @pytest.mark.asyncio
    async def test_failed_retry_keeps_previous_response(self, advisors, fast_config):
        service, _ = build({"a": ["first", ResponderNetworkError("down")]}, fast_config)
        session = service.create_session(advisors)
        await service.submit_consultation(session.id, "Q?")

        with pytest.raises(ConsultationError):
            await service.retry_advisor(session.id, "a")

        assert session.current_round.response_for("a").content == "first"
        assert [e.advisor_id for e in session.current_round.errors] == ["a"]

    @pytest.mark.asyncio
    async def test_unknown_advisor(self, advisors, fast_config):
        service, _ = build({}, fast_config)
        session = service.create_session(advisors)
        await service.submit_consultation(session.id, "Q?")

        with pytest.raises(AdvisorNotFoundError):
            await service.retry_advisor(session.id, "zzz")

        assert session.current_round.errors == []

    @pytest.mark.asyncio
    async def test_retry_without_any_prompt(self, advisors, fast_config):
        service, _ = build({}, fast_config)
        session = service.create_session(advisors)

        with pytest.raises(ConsultationError) as exc_info:
            await service.retry_advisor(session.id, "a")

        assert exc_info.value.kind == ErrorKind.PERSONA_ERROR

    @pytest.mark.asyncio
    async def test_retry_with_explicit_prompt_starts_round(self, advisors, fast_config):
        service, _ = build({}, fast_config)
        session = service.create_session(advisors)

        await service.retry_advisor(session.id, "a", prompt="Fresh question?")

        assert session.prompt == "Fresh question?"
        assert [r.advisor_id for r in session.responses] == ["a"]

    @pytest.mark.asyncio
    async def test_retry_during_submit_is_kept(self, advisors):
        service, _ = build(
            {"a": [0.3, "A"], "b": [ResponderNetworkError("down"), "B recovered"]},
            ServiceConfig(timeout_ms=2000, retry_attempts=1, retry_delay_ms=0),
        )
        session = service.create_session(advisors)

        task = asyncio.ensure_future(service.submit_consultation(session.id, "Q?"))
        await asyncio.sleep(0.05)
        await service.retry_advisor(session.id, "b")
        await task

        current = session.current_round
        assert len(session.rounds) == 1
        assert sorted(r.advisor_id for r in current.responses) == ["a", "b", "c"]
        assert current.response_for("b").content == "B recovered"
        assert current.errors == []

    @pytest.mark.asyncio
    async def test_retry_with_different_prompt_opens_new_round(self, advisors, fast_config):
        service, _ = build({}, fast_config)
        session = service.create_session(advisors)
        await service.submit_consultation(session.id, "Q?")
        first = session.current_round

        await service.retry_advisor(session.id, "a", prompt="Different?")

        assert len(session.rounds) == 2
        assert first.prompt == "Q?"
        assert sorted(r.advisor_id for r in first.responses) == ["a", "b", "c"]
        assert session.prompt == "Different?"
        assert [r.advisor_id for r in session.responses] == ["a"]
        assert session.current_round.analysis is not None
        assert session.previous_questions == ["Q?", "Different?"]

    @pytest.mark.asyncio
    async def test_retry_with_same_prompt_stays_in_round(self, advisors, fast_config):
        service, _ = build({}, fast_config)
        session = service.create_session(advisors)
        await service.submit_consultation(session.id, "Q?")

        await service.retry_advisor(session.id, "a", prompt="Q?")

        assert len(session.rounds) == 1


# ---------------------------------------------------------------------------
# Summaries and config
# ---------------------------------------------------------------------------


class TestSummaries:

    @pytest.mark.asyncio
    async def test_summary_stored_and_reset_by_retry(self, advisors, fast_config):
        service, _ = build({}, fast_config)
        session = service.create_session(advisors)
        await service.submit_consultation(session.id, "Q?")

        summary = await service.summarize_session(session.id)
        assert summary.startswith("**Advisory Board Summary**")
        assert session.current_round.summary == summary

        await service.retry_advisor(session.id, "a")
        assert session.current_round.summary is None

    @pytest.mark.asyncio
    async def test_nothing_to_summarize(self, advisors, fast_config):
        service, _ = build({}, fast_config)
        session = service.create_session(advisors)

        with pytest.raises(ConsultationError) as exc_info:
            await service.summarize_session(session.id)

        assert exc_info.value.kind == ErrorKind.PERSONA_ERROR

    @pytest.mark.asyncio
    async def test_summarize_responses_directly(self, fast_config):
        service, _ = build({}, fast_config)
        response = make_response("Sarah Kim", "Product Strategy", "Ship it.")
        summary = await service.summarize_responses([response], "Q?")
        assert summary.startswith("**Single Advisor Summary**")


def test_service_config_round_trip(fast_config):
    service, _ = build({}, fast_config)
    updated = service.update_service_config(retry_attempts=5)
    assert service.get_service_config() is updated
    assert updated.retry_attempts == 5
    assert updated.timeout_ms == fast_config.timeout_ms


def test_analyze_question_without_session(fast_config):
    service, _ = build({}, fast_config)
    assert service.analyze_question("Which herbal supplement helps sleep?").domain == "remediboard"


def test_sessions_listed_newest_first(fast_config):
    service, _ = build({}, fast_config)
    first = service.create_session([make_advisor("a")])
    second = service.create_session([make_advisor("b")])
    assert [s.id for s in service.list_sessions()] == [second.id, first.id]
