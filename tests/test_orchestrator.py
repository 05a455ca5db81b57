"""Annotation orchestrator: stage order, upsell, persistence guarantees."""

import asyncio
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from sales_agent.api import errors
from sales_agent.api.llm_pipeline import AnnotationOrchestrator, CompletionGateway
from sales_agent.api.prompt_utilities import CREATOR_REPLY, UPSELL_SUFFIX
from sales_agent.database.core.funcs import create_conversation_record, get_conversations


@pytest.fixture
def append_record():
    store = Mock(return_value=uuid4())
    return store


def run_turn(orchestrator, messages, owner_id="owner-1"):
    return asyncio.run(orchestrator.handle_turn(messages, owner_id))


class TestScenarios:
    """End-to-end turns against a scripted gateway"""

    def test_greeting_is_not_upsold(self, make_gateway, transcript, append_record):
        gateway = make_gateway("Hello! How can I help?", "NotQualified", "Neutral", "User greeted.")
        result = run_turn(AnnotationOrchestrator(gateway, append_record), transcript("hi"))

        assert result.reply == "Hello! How can I help?"
        assert UPSELL_SUFFIX not in result.reply
        assert result.conversation_id == append_record.return_value
        record = append_record.call_args.kwargs
        assert record["bot_reply"] == result.reply
        assert record["user_message"] == "hi"
        assert record["qualification"] == "NotQualified"
        assert record["sentiment"] == "Neutral"
        assert record["summary"] == "User greeted."
        assert record["transcript"] == [{"role": "user", "content": "hi"}]

    def test_creator_question_skips_reply_call(self, make_gateway, transcript, append_record):
        gateway = make_gateway("NotQualified", "Neutral", "User asked who built the bot.")
        result = run_turn(AnnotationOrchestrator(gateway, append_record), transcript("who created you"))

        assert result.reply == CREATOR_REPLY
        # Only the three classifier calls reached the gateway.
        assert gateway.complete.await_count == 3
        for call in gateway.complete.await_args_list:
            assert '"who created you"' in call.args[0][1].content

    def test_qualified_lead_gets_upsell(self, make_gateway, transcript, append_record):
        gateway = make_gateway("Happy to set up a demo.", "Qualified", "Positive", "User wants a demo.")
        result = run_turn(AnnotationOrchestrator(gateway, append_record), transcript("I'd like to schedule a demo"))

        assert result.reply == "Happy to set up a demo." + UPSELL_SUFFIX
        assert append_record.call_args.kwargs["bot_reply"] == result.reply
        summary_prompt = gateway.complete.await_args_list[3].args[0][1].content
        assert UPSELL_SUFFIX.strip() in summary_prompt
        assert "Happy to set up a demo." in summary_prompt

    def test_reply_failure_stores_nothing(self, make_gateway, transcript, append_record):
        gateway = make_gateway(errors.GatewayError("connection refused"))
        with pytest.raises(errors.GatewayError):
            run_turn(AnnotationOrchestrator(gateway, append_record), transcript("hi"))
        append_record.assert_not_called()


class TestStageOrder:

    def test_classifiers_run_after_reply_in_order(self, make_gateway, transcript, append_record):
        gateway = make_gateway("Sure.", "NotQualified", "Positive", "Summary.")
        run_turn(AnnotationOrchestrator(gateway, append_record), transcript("thanks"))

        calls = gateway.complete.await_args_list
        assert len(calls) == 4
        assert calls[0].args[0][-1].content == "thanks"
        assert "qualification" in calls[1].args[0][0].content.lower()
        assert "sentiment" in calls[2].args[0][0].content.lower()
        assert "summar" in calls[3].args[0][0].content.lower()

    def test_classifiers_use_latest_user_utterance(self, make_gateway, transcript, append_record):
        gateway = make_gateway("Our plans start at $10.", "Qualified", "Neutral", "Pricing asked.")
        run_turn(AnnotationOrchestrator(gateway, append_record), transcript("hi", "Hello!", "what are your prices"))
        assert '"what are your prices"' in gateway.complete.await_args_list[1].args[0][1].content
        assert append_record.call_args.kwargs["user_message"] == "what are your prices"


class TestFailures:

    @pytest.mark.parametrize("outputs", [
        ("Hi!", errors.GatewayError("down")),
        ("Hi!", "Perhaps"),
        ("Hi!", "NotQualified", errors.GatewayError("down")),
        ("Hi!", "NotQualified", "Ecstatic"),
        ("Hi!", "NotQualified", "Neutral", errors.GatewayError("down")),
        ("Hi!", "NotQualified", "Neutral", ""),
    ])
    def test_any_stage_failure_stores_nothing(self, make_gateway, transcript, append_record, outputs):
        gateway = make_gateway(*outputs)
        with pytest.raises(errors.GatewayError):
            run_turn(AnnotationOrchestrator(gateway, append_record), transcript("hello"))
        append_record.assert_not_called()

    def test_store_failure_is_distinct(self, make_gateway, transcript):
        gateway = make_gateway("Hi!", "NotQualified", "Neutral", "Greeting.")
        failing_store = Mock(side_effect=RuntimeError("disk full"))
        with pytest.raises(errors.StoreError) as exc_info:
            run_turn(AnnotationOrchestrator(gateway, failing_store), transcript("hello"))
        assert not isinstance(exc_info.value, errors.GatewayError)
        assert exc_info.value.status_code == 500
        assert exc_info.value.public_message == "Failed to save conversation."

    @pytest.mark.parametrize("messages, owner_id, message", [
        ([], "owner-1", "Messages array is required"),
        (None, "owner-1", "Messages array is required"),
        ("user-turn", None, "User ID is required."),
        ("user-turn", "  ", "User ID is required."),
    ])
    def test_validation_happens_before_any_call(self, make_gateway, transcript, append_record, messages, owner_id, message):
        if messages == "user-turn":
            messages = transcript("hello")
        gateway = make_gateway()
        with pytest.raises(errors.ValidationError) as exc_info:
            run_turn(AnnotationOrchestrator(gateway, append_record), messages, owner_id)
        assert exc_info.value.public_message == message
        gateway.complete.assert_not_awaited()
        append_record.assert_not_called()

    def test_turn_deadline(self, append_record, transcript):
        async def slow(messages):
            await asyncio.sleep(5)
            return "late"

        gateway = Mock()
        gateway.complete = AsyncMock(side_effect=slow)
        orchestrator = AnnotationOrchestrator(gateway, append_record, turn_deadline=0.05)
        with pytest.raises(errors.TurnTimeout):
            run_turn(orchestrator, transcript("hello"))
        append_record.assert_not_called()


class TestCompletionGateway:

    def test_returns_text_content(self):
        model = Mock()
        model.ainvoke = AsyncMock(return_value=Mock(content="hello"))
        assert asyncio.run(CompletionGateway(model, timeout=1).complete([])) == "hello"

    def test_joins_text_parts(self):
        model = Mock()
        content = [{"type": "text", "text": "Hel"}, {"type": "image_url"}, {"type": "text", "text": "lo"}]
        model.ainvoke = AsyncMock(return_value=Mock(content=content))
        assert asyncio.run(CompletionGateway(model).complete([])) == "Hello"

    def test_none_content_is_empty(self):
        model = Mock()
        model.ainvoke = AsyncMock(return_value=Mock(content=None))
        assert asyncio.run(CompletionGateway(model).complete([])) == ""

    def test_transport_error_becomes_gateway_error(self):
        model = Mock()
        model.ainvoke = AsyncMock(side_effect=ConnectionError("refused"))
        with pytest.raises(errors.GatewayError) as exc_info:
            asyncio.run(CompletionGateway(model).complete([]))
        assert not isinstance(exc_info.value, errors.TurnTimeout)
        assert exc_info.value.status_code == 502

    def test_slow_call_becomes_timeout(self):
        async def slow(messages):
            await asyncio.sleep(5)

        model = Mock()
        model.ainvoke = AsyncMock(side_effect=slow)
        with pytest.raises(errors.TurnTimeout) as exc_info:
            asyncio.run(CompletionGateway(model, timeout=0.05).complete([]))
        assert exc_info.value.status_code == 504


class TestWithConversationStore:

    def test_record_is_persisted(self, make_gateway, transcript):
        gateway = make_gateway("Our plans start at $10.", "Qualified", "Positive", "Pricing question.")
        result = run_turn(
            AnnotationOrchestrator(gateway, create_conversation_record),
            transcript("how much is it?"),
            owner_id="owner-42",
        )

        records = get_conversations(owner_id="owner-42")
        assert len(records) == 1
        assert records[0]["id"] == str(result.conversation_id)
        assert records[0]["bot_reply"] == result.reply
        assert records[0]["qualification"] == "Qualified"
        assert records[0]["transcript"] == [{"role": "user", "content": "how much is it?"}]

    def test_failed_turn_leaves_store_empty(self, make_gateway, transcript):
        gateway = make_gateway("Hi!", "NotQualified", "Unsure")
        with pytest.raises(errors.LabelContractViolation):
            run_turn(AnnotationOrchestrator(gateway, create_conversation_record), transcript("hello"), "owner-7")
        assert get_conversations(owner_id="owner-7") == []
