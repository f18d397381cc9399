"""LLM-based summarization of older conversation turns"""

import logging

from .events import ErrorCategory, ErrorEvent, ErrorEventEmitter
from .message import Message
from ctxwindow.errors import SummarizationError

logger = logging.getLogger(__name__)

SUMMARY_PREFIX = "Conversation summary: "

EMPTY_SUMMARY = f"{SUMMARY_PREFIX}No conversation to summarize yet."

SUMMARY_SYSTEM_PROMPT = """You are a highly efficient summarization assistant.

Summarize the following conversation accurately so it can be continued later.

PRESERVE:
- Tasks, requests and requirements stated by the user
- Decisions made and their rationale
- Factual details: names, numbers, dates, identifiers
- Open questions and pending next steps

FORMAT:
- Write in the third person
- Be clear and concise
- Do not invent information not present in the conversation"""


def format_messages_for_summary(messages: list[Message]) -> str:
    """Render messages as a ``role: content`` transcript, one turn per paragraph"""
    return "\n\n".join(f"{m.role}: {m.content}" for m in messages)


def create_summary_message(summary_text: str) -> Message:
    return Message(
        role="assistant",
        content=f"{SUMMARY_PREFIX}{summary_text}",
        is_summary=True,
    )


def create_fallback_summary(count: int) -> Message:
    """Summary used when the completion oracle fails"""
    noun = "message" if count == 1 else "messages"
    return Message(
        role="assistant",
        content=f"{SUMMARY_PREFIX}{count} earlier {noun} could not be summarized.",
        is_summary=True,
    )


async def summarize_messages(
    messages: list[Message],
    clients,
    model: str,
    events: ErrorEventEmitter | None = None,
    source: str = "summarize_conversation",
) -> Message:
    """Collapse messages into one synthetic assistant message.

    System messages are ignored. This never raises for oracle failures: the
    error is reported through ``events`` and a fallback summary stating how
    many messages were dropped is returned instead.
    """
    turns = [m for m in messages if m.role != "system"]

    if not turns:
        return Message(role="assistant", content=EMPTY_SUMMARY, is_summary=True)

    transcript = format_messages_for_summary(turns)

    try:
        client = clients.get_client_for_model(model)
        response = await client.completion(
            model=model,
            system=SUMMARY_SYSTEM_PROMPT,
            messages=[
                {"role": "user", "content": f"Please summarize this conversation:\n\n{transcript}"},
            ],
        )
        text = (response.content or "").strip()
        if not text:
            raise SummarizationError(f"Summarization model {model} returned an empty summary")
    except Exception as e:
        logger.warning(f"Summarization failed: {e}")
        if events is not None:
            events.emit(ErrorEvent.from_exception(
                ErrorCategory.LLM_SUMMARIZATION_ERROR, e, source=source, model_id=model,
            ))
        return create_fallback_summary(len(turns))

    return create_summary_message(text)
