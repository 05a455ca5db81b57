"""Reply stage: identity shortcuts, model replies, fallback."""

import asyncio

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from sales_agent.api import errors
from sales_agent.api.llm_pipeline import IDENTITY_SHORTCUTS, ReplyStage, ShortcutRule, last_user_utterance
from sales_agent.api.models import ChatMessage
from sales_agent.api.prompt_utilities import CREATOR_REPLY, FALLBACK_REPLY, NAME_REPLY


class TestShortcuts:
    """Canned replies served without a model call"""

    @pytest.mark.parametrize("utterance", [
        "who created you",
        "Who created you?",
        "hey, WHO CREATED YOU exactly",
    ])
    def test_creator_shortcut(self, make_gateway, transcript, utterance):
        gateway = make_gateway()
        reply = asyncio.run(ReplyStage(gateway).produce_reply(transcript(utterance)))
        assert reply == CREATOR_REPLY
        gateway.complete.assert_not_awaited()

    @pytest.mark.parametrize("utterance", [
        "What is your name?",
        "who are you",
        "tell me your name please",
    ])
    def test_name_shortcut(self, make_gateway, transcript, utterance):
        gateway = make_gateway()
        reply = asyncio.run(ReplyStage(gateway).produce_reply(transcript(utterance)))
        assert reply == NAME_REPLY
        gateway.complete.assert_not_awaited()

    def test_creator_rule_wins_over_name_rule(self, make_gateway, transcript):
        gateway = make_gateway()
        reply = asyncio.run(ReplyStage(gateway).produce_reply(transcript("who created you and what is your name")))
        assert reply == CREATOR_REPLY

    def test_only_latest_user_message_is_matched(self, make_gateway, transcript):
        gateway = make_gateway("Sure, here are our plans.")
        messages = transcript("what is your name", NAME_REPLY, "show me pricing")
        reply = asyncio.run(ReplyStage(gateway).produce_reply(messages))
        assert reply == "Sure, here are our plans."
        gateway.complete.assert_awaited_once()

    def test_custom_rule_table(self, make_gateway, transcript):
        rules = (ShortcutRule("ping", lambda text: text == "ping", "pong"),)
        gateway = make_gateway()
        assert asyncio.run(ReplyStage(gateway, rules).produce_reply(transcript("PING"))) == "pong"

    def test_default_table_order(self):
        assert [rule.name for rule in IDENTITY_SHORTCUTS] == ["creator", "name"]


class TestModelReply:
    """Replies produced by the completion gateway"""

    def test_reply_is_returned_verbatim(self, make_gateway, transcript):
        gateway = make_gateway("  Hello there!  \n")
        reply = asyncio.run(ReplyStage(gateway).produce_reply(transcript("hi")))
        assert reply == "  Hello there!  \n"

    def test_empty_content_uses_fallback(self, make_gateway, transcript):
        gateway = make_gateway("")
        assert asyncio.run(ReplyStage(gateway).produce_reply(transcript("hi"))) == FALLBACK_REPLY

    def test_transcript_is_forwarded_in_order(self, make_gateway):
        gateway = make_gateway("ok")
        messages = [
            ChatMessage(role="system", content="be brief"),
            ChatMessage(role="user", content="hi"),
            ChatMessage(role="assistant", content="hello"),
            ChatMessage(role="user", content="prices?"),
        ]
        asyncio.run(ReplyStage(gateway).produce_reply(messages))
        sent = gateway.complete.await_args.args[0]
        assert [type(m) for m in sent] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
        assert [m.content for m in sent] == ["be brief", "hi", "hello", "prices?"]

    def test_gateway_error_propagates(self, make_gateway, transcript):
        gateway = make_gateway(errors.GatewayError("boom"))
        with pytest.raises(errors.GatewayError):
            asyncio.run(ReplyStage(gateway).produce_reply(transcript("hi")))


class TestLastUserUtterance:

    def test_picks_most_recent_user_message(self, transcript):
        assert last_user_utterance(transcript("first", "reply", "second", "reply")) == "second"

    def test_no_user_message_is_rejected(self):
        with pytest.raises(errors.ValidationError):
            last_user_utterance([ChatMessage(role="assistant", content="hello")])
