"""
Prompt Utilities: Canned Replies • Classifier Prompts • Message Builders
========================================================================

Fixed texts used by the chat turn:
- canned identity replies served without calling the model
- the fallback reply used when the model returns empty content
- the upsell suffix appended to replies of qualified leads
- system instructions and user templates of the three classifier calls

and the helpers that turn them into LangChain message lists.
"""

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.prompts import PromptTemplate

CREATOR_REPLY = (
    "I was created by the team ByteKnights. Members were Pranav Sharma, "
    "Kashvi Pratap Singh, and Kush Arora."
)
"""Reply to questions about who built the assistant."""

NAME_REPLY = "My name is Eli."
"""Reply to questions about the assistant's name or identity."""

FALLBACK_REPLY = "No response generated."
"""Used when the completion endpoint answers with empty content."""

UPSELL_SUFFIX = (
    "\n\nGreat news! Based on our conversation, you appear to be a qualified lead. "
    "Would you like me to help you schedule a follow-up meeting?"
)
"""Appended to the reply when the turn is classified as Qualified."""


QUALIFICATION_INSTRUCTION = (
    "You are an expert lead qualification specialist. Your only task is to classify "
    "user messages as 'Qualified' or 'NotQualified' based on their expressed interest "
    "in a product or service. Do not elaborate or provide any other text."
)

QUALIFICATION_TEMPLATE = PromptTemplate.from_template(
    """Analyze the user's intent from the following message. Based on their interest level in a product or service, respond with ONLY 'Qualified' or 'NotQualified'.

Qualified Examples:
- "I want to talk about business."
- "I'm interested in purchasing your software."
- "Can you tell me more about your pricing plans?"
- "I'd like to schedule a demo."

NotQualified Examples:
- "Hi"
- "How are you?"
- "Tell me a joke."
- "I want advice."

User message: "{utterance}\""""
)
"""Qualification prompt; expressed interest in product, pricing or a demo is the positive side."""

SENTIMENT_INSTRUCTION = (
    "You are a sentiment analysis expert. Your task is to analyze the sentiment of the "
    "user's message and respond with ONLY 'Positive', 'Negative', or 'Neutral'. "
    "Do not elaborate or provide any other text."
)

SENTIMENT_TEMPLATE = PromptTemplate.from_template(
    "Analyze the sentiment of the following user message. Respond with ONLY "
    "'Positive', 'Negative', or 'Neutral'. User message: \"{utterance}\""
)

SUMMARY_INSTRUCTION = (
    "You are a conversation summarization expert. Your task is to provide a concise "
    "summary of the given chat messages. Do not elaborate or provide any other text."
)

SUMMARY_TEMPLATE = PromptTemplate.from_template(
    "Summarize the following conversation for a quick overview. "
    "User message: \"{utterance}\" | Bot reply: \"{reply}\""
)
"""Summary prompt; `reply` is the final reply, upsell suffix included."""


_ROLE_TO_MESSAGE = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


def to_langchain_messages(transcript) -> list[BaseMessage]:
    """
    Convert `{role, content}` messages into LangChain message objects, preserving order.

    Args:
        transcript: Iterable of objects exposing `.role` and `.content`.

    Returns:
        list[BaseMessage]
    """
    return [_ROLE_TO_MESSAGE[message.role](content=message.content) for message in transcript]


def build_messages(instruction: str, prompt: str) -> list[BaseMessage]:
    """Build the two-message request of a classifier call: system instruction, then the filled template."""
    return [SystemMessage(content=instruction), HumanMessage(content=prompt)]
