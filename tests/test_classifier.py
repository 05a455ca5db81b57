"""Classifier stage: label contracts and prompt construction."""

import asyncio

import pytest
from langchain_core.messages import HumanMessage, SystemMessage

from sales_agent.api import errors
from sales_agent.api.llm_pipeline import (
    QUALIFICATION,
    QUALIFICATION_LABELS,
    SENTIMENT,
    SENTIMENT_LABELS,
    SUMMARY,
    Classifier,
    normalize_label,
)


class TestNormalizeLabel:

    @pytest.mark.parametrize("raw, expected", [
        ("Qualified", "Qualified"),
        ("  Qualified\n", "Qualified"),
        ("NotQualified", "NotQualified"),
        ("Not Qualified", "NotQualified"),
        ("qualified", None),
        ("Qualified.", None),
        ("Maybe", None),
        ("**Qualified**", None),
    ])
    def test_strict(self, raw, expected):
        assert normalize_label(raw, QUALIFICATION_LABELS, "strict") == expected

    @pytest.mark.parametrize("raw, expected", [
        ("positive", "Positive"),
        ("'Negative'", "Negative"),
        ("NEUTRAL.", "Neutral"),
        ('"Positive!"', "Positive"),
        ("**Positive**", "Positive"),
        ("_Neutral_.", "Neutral"),
        ("**Mixed**", None),
        ("Mixed", None),
    ])
    def test_lenient(self, raw, expected):
        assert normalize_label(raw, SENTIMENT_LABELS, "lenient") == expected


class TestClassifier:

    def test_returns_canonical_label(self, make_gateway):
        gateway = make_gateway(" Qualified ")
        label = asyncio.run(Classifier(gateway, "strict").classify(QUALIFICATION, utterance="I want a demo"))
        assert label == "Qualified"

    def test_out_of_set_output_is_a_contract_violation(self, make_gateway):
        gateway = make_gateway("Somewhat positive")
        with pytest.raises(errors.LabelContractViolation) as exc_info:
            asyncio.run(Classifier(gateway, "strict").classify(SENTIMENT, utterance="ok"))
        assert exc_info.value.stage == "sentiment"
        assert exc_info.value.raw_output == "Somewhat positive"
        assert isinstance(exc_info.value, errors.GatewayError)

    def test_empty_output_is_a_gateway_error(self, make_gateway):
        gateway = make_gateway("   ")
        with pytest.raises(errors.GatewayError):
            asyncio.run(Classifier(gateway).classify(SUMMARY, utterance="hi", reply="hello"))

    def test_summary_is_free_text(self, make_gateway):
        gateway = make_gateway("  User greeted the bot.  ")
        summary = asyncio.run(Classifier(gateway).classify(SUMMARY, utterance="hi", reply="hello"))
        assert summary == "User greeted the bot."

    def test_prompt_is_instruction_then_filled_template(self, make_gateway):
        gateway = make_gateway("Neutral")
        asyncio.run(Classifier(gateway).classify(SENTIMENT, utterance="what time is it"))
        system, human = gateway.complete.await_args.args[0]
        assert isinstance(system, SystemMessage)
        assert isinstance(human, HumanMessage)
        assert "sentiment" in system.content.lower()
        assert '"what time is it"' in human.content

    def test_qualification_prompt_carries_examples(self, make_gateway):
        gateway = make_gateway("NotQualified")
        asyncio.run(Classifier(gateway).classify(QUALIFICATION, utterance="hello"))
        human = gateway.complete.await_args.args[0][1]
        assert "I'd like to schedule a demo." in human.content
        assert "Tell me a joke." in human.content

    def test_default_mode_comes_from_settings(self, make_gateway):
        assert Classifier(make_gateway()).label_matching == "strict"
