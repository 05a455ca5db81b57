"""
Sales Chat Turn: Reply Stage • Classifier Stage • Annotation Orchestrator
========================================================================

Purpose
-------
This module turns one inbound transcript into one reply and one persisted,
annotated conversation record:
- Produces the assistant reply, either from a canned identity shortcut or from the model.
- Classifies the latest user utterance for lead qualification and sentiment.
- Appends an upsell invitation to replies of qualified leads.
- Summarizes the exchange (utterance + final reply) and appends the record.

Key Components
--------------
- CompletionGateway      : Single async call to the chat completion endpoint, bounded by a timeout.
- ShortcutRule           : Ordered (predicate, fixed reply) entries served without a model call.
- ReplyStage             : Shortcut table first, model otherwise; empty content becomes the fallback reply.
- ClassifierTask         : Instruction, prompt template and closed label set of one classifier call.
- Classifier             : Runs a ClassifierTask and enforces its label contract.
- AnnotationOrchestrator : Runs the stages in order and appends the record only when all succeed.

Ordering
--------
Reply → Qualification → upsell (when Qualified) → Sentiment → Summary → append.
Each stage awaits the previous one. The summary sees the reply the client
will receive, upsell suffix included.

Configuration (settings)
------------------------
- settings.API_KEY                     : Key of the OpenAI-compatible completion endpoint.
- settings.COMPLETION_BASE_URL         : Endpoint base URL.
- settings.COMPLETION_MODEL            : Model name.
- settings.COMPLETION_TIMEOUT_SECONDS  : Per-call timeout.
- settings.TURN_DEADLINE_SECONDS       : Deadline of the whole turn.
- settings.LABEL_MATCHING              : "strict" or "lenient" label normalization.

Error Handling
--------------
Every failure is raised as a `sales_agent.api.errors.TurnError` subclass; no
record is written unless every stage succeeded.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from langchain_core.messages import BaseMessage
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI

from sales_agent.api import errors
from sales_agent.api.models import ChatMessage
from sales_agent.api.prompt_utilities import (
    CREATOR_REPLY,
    FALLBACK_REPLY,
    NAME_REPLY,
    QUALIFICATION_INSTRUCTION,
    QUALIFICATION_TEMPLATE,
    SENTIMENT_INSTRUCTION,
    SENTIMENT_TEMPLATE,
    SUMMARY_INSTRUCTION,
    SUMMARY_TEMPLATE,
    UPSELL_SUFFIX,
    build_messages,
    to_langchain_messages,
)
from sales_agent.database.config.config import settings
from sales_agent.database.core.funcs import create_conversation_record

logger = logging.getLogger(__name__)

QUALIFIED = "Qualified"
NOT_QUALIFIED = "NotQualified"
QUALIFICATION_LABELS = frozenset({QUALIFIED, NOT_QUALIFIED})
SENTIMENT_LABELS = frozenset({"Positive", "Negative", "Neutral"})
LENIENT_WRAPPERS = "\"'`*_"


def build_chat_model() -> ChatOpenAI:
    """
    Create the LangChain chat model used for every completion call.

    Retries are disabled: a failed call fails the turn, and the caller decides
    whether to resend it.
    """
    return ChatOpenAI(
        model=settings.COMPLETION_MODEL,
        api_key=settings.API_KEY,
        base_url=settings.COMPLETION_BASE_URL,
        max_retries=0,
    )


def lc_text_from_content(content) -> str:
    """Normalize LangChain message content to plain text.

    - If None → empty string.
    - If string → return as-is.
    - If list of content parts → concatenates only 'text' parts.
    - Else → str(content).
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text")
    return str(content)


class CompletionGateway:
    """
    Async access to the chat completion endpoint.

    Args:
        model: Any LangChain chat model exposing `ainvoke` (normally `ChatOpenAI`).
        timeout (float | None): Seconds allowed per call; None disables the bound.
    """

    def __init__(self, model, timeout: Optional[float] = None):
        self.model = model
        self.timeout = timeout

    async def complete(self, messages: List[BaseMessage]) -> str:
        """
        Send one ordered message list and return the text of the first choice.

        Raises:
            errors.TurnTimeout: The call ran past `timeout`.
            errors.GatewayError: Transport or API failure.
        """
        try:
            response = await asyncio.wait_for(self.model.ainvoke(messages), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise errors.TurnTimeout(f"completion call exceeded {self.timeout}s") from e
        except errors.TurnError:
            raise
        except Exception as e:
            raise errors.GatewayError(f"completion call failed: {e!r}") from e
        return lc_text_from_content(getattr(response, "content", response))


def build_gateway() -> CompletionGateway:
    """Gateway bound to the configured model and per-call timeout."""
    return CompletionGateway(build_chat_model(), timeout=settings.COMPLETION_TIMEOUT_SECONDS)


def contains_any(*phrases: str) -> Callable[[str], bool]:
    """Predicate matching text (already lower-cased) that contains any of `phrases`."""
    return lambda text: any(phrase in text for phrase in phrases)


@dataclass(frozen=True)
class ShortcutRule:
    """One canned reply and the predicate that triggers it."""
    name: str
    predicate: Callable[[str], bool]
    reply: str

    def matches(self, utterance: str) -> bool:
        return self.predicate(utterance.lower())


# First match wins.
IDENTITY_SHORTCUTS: Sequence[ShortcutRule] = (
    ShortcutRule("creator", contains_any("who created you"), CREATOR_REPLY),
    ShortcutRule("name", contains_any("your name", "who are you", "what is your name"), NAME_REPLY),
)


def last_user_utterance(transcript: Sequence[ChatMessage]) -> str:
    """
    Return the content of the most recent message with role "user".

    Raises:
        errors.ValidationError: The transcript has no user message.
    """
    for message in reversed(transcript):
        if message.role == "user":
            return message.content
    raise errors.ValidationError("Transcript must contain a user message.")


class ReplyStage:
    """
    Produces the assistant reply for a transcript.

    Args:
        gateway (CompletionGateway): Used when no shortcut matches.
        shortcuts (Sequence[ShortcutRule]): Ordered rule table, first match wins.
    """

    def __init__(self, gateway: CompletionGateway, shortcuts: Sequence[ShortcutRule] = IDENTITY_SHORTCUTS):
        self.gateway = gateway
        self.shortcuts = shortcuts

    def match_shortcut(self, utterance: str) -> Optional[ShortcutRule]:
        for rule in self.shortcuts:
            if rule.matches(utterance):
                return rule
        return None

    async def produce_reply(self, transcript: Sequence[ChatMessage]) -> str:
        """
        Reply to the latest user utterance.

        A matching shortcut returns its fixed reply without calling the gateway.
        Otherwise the full transcript goes to the model in order and its text is
        returned verbatim; empty content becomes FALLBACK_REPLY.
        """
        utterance = last_user_utterance(transcript)
        rule = self.match_shortcut(utterance)
        if rule is not None:
            logger.info("Reply served by %r shortcut", rule.name)
            return rule.reply
        text = await self.gateway.complete(to_langchain_messages(transcript))
        if not text:
            logger.warning("Completion returned empty content, using fallback reply")
            return FALLBACK_REPLY
        logger.info("Reply generated by model (%d chars)", len(text))
        return text


@dataclass(frozen=True)
class ClassifierTask:
    """
    One classifier call.

    `labels` is the closed output set; an empty set means free text (summary).
    """
    name: str
    instruction: str
    template: PromptTemplate
    labels: frozenset = field(default_factory=frozenset)


QUALIFICATION = ClassifierTask("qualification", QUALIFICATION_INSTRUCTION, QUALIFICATION_TEMPLATE, QUALIFICATION_LABELS)
SENTIMENT = ClassifierTask("sentiment", SENTIMENT_INSTRUCTION, SENTIMENT_TEMPLATE, SENTIMENT_LABELS)
SUMMARY = ClassifierTask("summary", SUMMARY_INSTRUCTION, SUMMARY_TEMPLATE)


def normalize_label(raw: str, labels: frozenset, mode: str = "strict") -> Optional[str]:
    """
    Map raw classifier output onto its label set.

    Args:
        raw (str): Model output.
        labels (frozenset): Valid labels.
        mode (str): "strict" compares case-sensitively after removing whitespace,
            so "Not Qualified" still reads as "NotQualified". "lenient" also ignores
            case, surrounding quotes or markdown emphasis, and trailing punctuation.

    Returns:
        str | None: The canonical label, or None when nothing matches.
    """
    candidate = "".join(raw.split())
    if mode == "lenient":
        candidate = candidate.strip(LENIENT_WRAPPERS).rstrip(".!,;:").strip(LENIENT_WRAPPERS).lower()
        return {label.lower(): label for label in labels}.get(candidate)
    return candidate if candidate in labels else None


class Classifier:
    """
    Runs classifier calls against the gateway and enforces label contracts.

    Args:
        gateway (CompletionGateway): Completion access.
        label_matching (str | None): "strict" or "lenient"; defaults to settings.LABEL_MATCHING.
    """

    def __init__(self, gateway: CompletionGateway, label_matching: Optional[str] = None):
        self.gateway = gateway
        self.label_matching = label_matching or settings.LABEL_MATCHING

    async def classify(self, task: ClassifierTask, **inputs) -> str:
        """
        Fill the task's template with `inputs` and return the validated output.

        Raises:
            errors.GatewayError: Gateway failure or empty output.
            errors.LabelContractViolation: Output outside `task.labels`.
        """
        messages = build_messages(task.instruction, task.template.format(**inputs))
        raw = (await self.gateway.complete(messages)).strip()
        if not raw:
            raise errors.GatewayError(f"{task.name} classifier returned empty output")
        if not task.labels:
            return raw
        label = normalize_label(raw, task.labels, self.label_matching)
        if label is None:
            raise errors.LabelContractViolation(task.name, raw, task.labels)
        return label


@dataclass
class TurnResult:
    """Outcome of a successful turn; `reply` equals the persisted bot_reply."""
    reply: str
    conversation_id: UUID
    qualification: str
    sentiment: str
    summary: str


def validate_turn(transcript, owner_id) -> str:
    """
    Check a turn request before any external call and return its latest user utterance.

    Raises:
        errors.ValidationError
    """
    if not transcript:
        raise errors.ValidationError("Messages array is required")
    if owner_id is None or not str(owner_id).strip():
        raise errors.ValidationError("User ID is required.")
    return last_user_utterance(transcript)


class AnnotationOrchestrator:
    """
    Sequences one chat turn and appends its annotated record.

    Args:
        gateway (CompletionGateway): Shared by the reply and classifier stages.
        append_record (callable): Store append; keyword arguments owner_id, user_message,
            bot_reply, qualification, sentiment, summary, transcript; returns the record id.
        label_matching (str | None): Label normalization mode for the classifiers.
        turn_deadline (float | None): Seconds allowed for the whole turn; None disables it.
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        append_record: Callable[..., UUID] = create_conversation_record,
        label_matching: Optional[str] = None,
        turn_deadline: Optional[float] = None,
    ):
        self.reply_stage = ReplyStage(gateway)
        self.classifier = Classifier(gateway, label_matching)
        self.append_record = append_record
        self.turn_deadline = turn_deadline

    async def handle_turn(self, transcript: Sequence[ChatMessage], owner_id: str) -> TurnResult:
        """
        Run one turn: reply, annotate, persist.

        Raises:
            errors.ValidationError: Bad request, raised before any gateway call.
            errors.TurnTimeout: The turn ran past `turn_deadline` or a call timed out.
            errors.GatewayError: A stage failed.
            errors.StoreError: Every stage succeeded but the append failed.
        """
        utterance = validate_turn(transcript, owner_id)
        try:
            return await asyncio.wait_for(self._run_stages(transcript, owner_id, utterance), timeout=self.turn_deadline)
        except asyncio.TimeoutError as e:
            raise errors.TurnTimeout(f"turn exceeded {self.turn_deadline}s deadline") from e

    async def _run_stages(self, transcript: Sequence[ChatMessage], owner_id: str, utterance: str) -> TurnResult:
        reply = await self.reply_stage.produce_reply(transcript)

        qualification = await self.classifier.classify(QUALIFICATION, utterance=utterance)
        logger.info("Turn for %s classified as %s", owner_id, qualification)
        if qualification == QUALIFIED:
            reply = reply + UPSELL_SUFFIX

        sentiment = await self.classifier.classify(SENTIMENT, utterance=utterance)
        summary = await self.classifier.classify(SUMMARY, utterance=utterance, reply=reply)
        logger.info("Turn for %s annotated: sentiment=%s summary_len=%d", owner_id, sentiment, len(summary))

        # Not awaited: the turn deadline cannot cancel an append mid-commit.
        try:
            conversation_id = self.append_record(
                owner_id=owner_id,
                user_message=utterance,
                bot_reply=reply,
                qualification=qualification,
                sentiment=sentiment,
                summary=summary,
                transcript=[message.model_dump() for message in transcript],
            )
        except Exception as e:
            logger.exception("Failed to append conversation record for %s", owner_id)
            raise errors.StoreError(f"append failed: {e!r}") from e

        return TurnResult(
            reply=reply,
            conversation_id=conversation_id,
            qualification=qualification,
            sentiment=sentiment,
            summary=summary,
        )
