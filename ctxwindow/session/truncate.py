"""Truncation of conversations to a token budget"""

import logging
from enum import Enum
from typing import Literal

from .message import Message
from .tokens import TokenAccountant, estimate_token_count

logger = logging.getLogger(__name__)

# Role markers and formatting cost per message
MESSAGE_OVERHEAD_TOKENS = 4

Strategy = Literal["sliding-window", "drop-middle", "summarize"]


def split_system_messages(messages: list[Message]) -> tuple[list[Message], list[Message]]:
    """Partition into (system, non-system), each in original order"""
    system = [m for m in messages if m.role == "system"]
    others = [m for m in messages if m.role != "system"]
    return system, others


async def truncate_messages(
    messages: list[Message],
    model_id: str,
    available_tokens: int,
    accountant: TokenAccountant,
) -> list[Message]:
    """Keep every system message plus the newest contiguous run of other messages that fits.

    Walks from newest to oldest and stops at the first message that would
    overflow; older messages are never reconsidered. The newest non-system
    message is always kept, even when it alone exceeds the budget.
    """
    system_messages, non_system_messages = split_system_messages(messages)
    if not non_system_messages:
        return system_messages

    used = await accountant.total_tokens(system_messages, model_id)

    kept: list[Message] = []
    for message in reversed(non_system_messages):
        tokens = await accountant.tokens_for(message, model_id)
        if kept and used + tokens > available_tokens:
            break
        kept.append(message)
        used += tokens

    kept.reverse()
    logger.debug(f"Truncated {len(messages)} messages to {len(system_messages) + len(kept)} ({used} tokens)")
    return system_messages + kept


def minimal_message_set(messages: list[Message]) -> list[Message]:
    """The first system message (if any) and the last message, without oracle calls"""
    if not messages:
        return []

    last = messages[-1]
    first_system = next((m for m in messages if m.role == "system"), None)

    if first_system is None or first_system is last:
        return [last]
    return [first_system, last]


def estimate_message_tokens(messages: list[Message]) -> int:
    """Heuristic token count for a message list, with no oracle calls"""
    return sum(MESSAGE_OVERHEAD_TOKENS + estimate_token_count(m.content) for m in messages)


def truncate_with_strategy(
    messages: list[Message],
    max_tokens: int,
    strategy: Strategy = "sliding-window",
    preserve_recent_count: int = 4,
    preserve_initial_count: int = 1,
) -> list[Message]:
    """Heuristically truncate by position rather than by role.

    ``sliding-window`` keeps the first ``preserve_initial_count`` and the last
    ``preserve_recent_count`` messages, or just the first ones plus the last
    message when the recent block alone is too large. ``drop-middle`` keeps
    both ends and fills the budget with the oldest middle messages that fit.
    ``summarize`` needs a completion call and behaves like ``sliding-window``
    here, as does any unknown strategy.
    """
    if not messages or estimate_message_tokens(messages) <= max_tokens:
        return messages

    initial = messages[:preserve_initial_count]
    recent_start = max(len(initial), len(messages) - preserve_recent_count)
    recent = messages[recent_start:]

    if strategy == "drop-middle":
        budget = max_tokens - estimate_message_tokens(recent)
        result = list(initial)
        used = estimate_message_tokens(initial)
        if used >= budget:
            return initial + recent

        for message in messages[len(initial):recent_start]:
            tokens = estimate_message_tokens([message])
            if used + tokens > budget:
                break
            result.append(message)
            used += tokens
        return result + recent

    if estimate_message_tokens(recent) > max_tokens - estimate_message_tokens(initial):
        if len(messages) > len(initial):
            return initial + [messages[-1]]
        return initial
    return initial + recent


class TruncationLevel(str, Enum):
    """How hard ``progressive_truncation`` had to cut"""
    NONE = "none"
    LIGHT = "light"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"
    EXTREME = "extreme"


_ESCALATION = [
    (TruncationLevel.LIGHT, "drop-middle", 6),
    (TruncationLevel.MODERATE, "sliding-window", 4),
    (TruncationLevel.AGGRESSIVE, "sliding-window", 2),
]


def progressive_truncation(
    messages: list[Message],
    max_tokens: int,
    level: TruncationLevel = TruncationLevel.LIGHT,
) -> tuple[list[Message], TruncationLevel]:
    """Try increasingly aggressive truncation until the heuristic count fits.

    Starts at ``level`` and escalates. The extreme level is the minimal
    message set and is returned even if it is still over budget.
    """
    if estimate_message_tokens(messages) <= max_tokens:
        return messages, TruncationLevel.NONE

    # EXTREME indexes past the table and goes straight to the minimal set
    order = [step[0] for step in _ESCALATION] + [TruncationLevel.EXTREME]
    start = order.index(level) if level in order else 0

    for current, strategy, recent_count in _ESCALATION[start:]:
        truncated = truncate_with_strategy(
            messages,
            max_tokens,
            strategy=strategy,
            preserve_recent_count=recent_count,
            preserve_initial_count=1,
        )
        if estimate_message_tokens(truncated) <= max_tokens:
            logger.debug(f"Progressive truncation settled at {current.value}: {len(truncated)} messages")
            return truncated, current

    return minimal_message_set(messages), TruncationLevel.EXTREME
