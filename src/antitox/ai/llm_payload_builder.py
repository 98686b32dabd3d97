"""
Build classifier requests from a pending batch.

- Applies evasion annotation to every message under analysis
- Adds already-consumed history per player as non-actionable context
- Produces the ChatCompletionMessageParam list for the OpenAI-compatible API
- Returns the annotated-to-original lookup used to restore trigger text
"""

from __future__ import annotations

import json
from typing import Dict, List, Mapping, Sequence, Tuple

from openai.types.chat import (
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam,
)

from antitox.util.evasion import annotate_evasion
from antitox.util.logger import get_logger

logger = get_logger("llm_payload_builder")

SERVER_TYPE_PLACEHOLDER = "<|SERVER_TYPE_INJECT|>"

FALLBACK_SYSTEM_PROMPT = (
    "You are an automated chat moderation system. Evaluate the player messages in "
    "the user payload and decide whether any deserve a sanction. Messages under "
    "'history' are context only and must never be sanctioned. Server type: "
    f"{SERVER_TYPE_PLACEHOLDER}. Respond only with JSON of the form "
    '{"sanctions": [{"player": "", "action": "WARN|MUTE|KICK|BAN|IPBAN", '
    '"duration": "", "reason": "", "trigger_message": ""}]}.'
)


def render_system_prompt(template: str, server_type: str) -> str:
    """Inject the server type into the configured system prompt template."""
    template = template or FALLBACK_SYSTEM_PROMPT
    if SERVER_TYPE_PLACEHOLDER in template:
        return template.replace(SERVER_TYPE_PLACEHOLDER, server_type)
    return f"{template}\n\nServer type: {server_type}"


def annotate_batch(batch_by_author: Mapping[str, Sequence[str]]) -> Tuple[Dict[str, List[str]], Dict[str, str]]:
    """
    Annotate every message with its normalized form where it differs.

    Returns:
        ``(annotated_by_author, originals)`` where ``originals`` maps each
        annotated string back to the message as the player typed it.
    """
    annotated: Dict[str, List[str]] = {}
    originals: Dict[str, str] = {}
    for author, texts in batch_by_author.items():
        annotated[author] = []
        for text in texts:
            shown = annotate_evasion(text)
            annotated[author].append(shown)
            if shown != text:
                originals[shown] = text
    if originals:
        logger.debug("[PAYLOAD] %d messages carry a normalized form", len(originals))
    return annotated, originals


def build_classifier_messages(
    batch_by_author: Mapping[str, Sequence[str]],
    context_by_author: Mapping[str, Sequence[str]] | None,
    system_prompt: str,
    server_type: str,
) -> Tuple[List[ChatCompletionMessageParam], Dict[str, str]]:
    """
    Convert a pending batch into chat-completion messages.

    Context is only included for players that also have messages under
    analysis and only when it is non-empty.
    """
    annotated, originals = annotate_batch(batch_by_author)

    history: Dict[str, List[str]] = {}
    for author, texts in (context_by_author or {}).items():
        if author in batch_by_author and texts:
            history[author] = list(texts)

    payload = {
        "server_type": server_type,
        "history": history,
        "messages": annotated,
    }

    messages: List[ChatCompletionMessageParam] = [
        ChatCompletionSystemMessageParam(role="system", content=render_system_prompt(system_prompt, server_type)),
        ChatCompletionUserMessageParam(role="user", content=json.dumps(payload, ensure_ascii=False)),
    ]
    return messages, originals
