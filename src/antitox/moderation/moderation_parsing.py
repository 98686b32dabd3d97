"""Utilities for parsing classifier replies into verdicts."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Tuple

import jsonschema

from antitox.datatypes.action_datatypes import ActionKind, Verdict
from antitox.util.evasion import strip_annotation
from antitox.util.logger import get_logger

logger = get_logger("moderation_parsing")

_CODE_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\n?")
_CODE_FENCE_CLOSE = re.compile(r"\n?```$")

# Schema requested from the model via structured outputs
RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "sanctions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "player": {"type": "string"},
                    "action": {"type": "string", "enum": [kind.value for kind in ActionKind]},
                    "duration": {"type": "string"},
                    "reason": {"type": "string"},
                    "trigger_message": {"type": "string"},
                },
                "required": ["player", "action", "duration", "reason", "trigger_message"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["sanctions"],
    "additionalProperties": False,
}

# Per-entry check applied to whatever the model actually returned.
# The action is only required to be a string; unknown kinds are dropped afterwards.
ENTRY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "player": {"type": "string", "pattern": r"^\s*\S+\s*$"},
        "action": {"type": "string"},
        "reason": {"type": "string"},
        "trigger_message": {"type": ["string", "null"]},
        "duration": {"type": ["string", "null"]},
    },
    "required": ["player", "action", "reason"],
}

_entry_validator = jsonschema.Draft7Validator(ENTRY_SCHEMA)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence such as ```json ... ```."""
    text = text.strip()
    if text.startswith("```"):
        text = _CODE_FENCE_CLOSE.sub("", _CODE_FENCE_OPEN.sub("", text)).strip()
    return text


def _extract_json_payload(raw: str) -> Any:
    """Decode the JSON document contained in ``raw``."""
    try:
        return json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as exc:
        logger.warning("[EXTRACT] Parsing failed: %s", exc)
        raise ValueError("Failed to extract JSON payload") from exc


def parse_verdicts(response: str, originals: Mapping[str, str] | None = None) -> Tuple[List[Verdict], bool]:
    """Parse a classifier reply into verdicts.

    Accepts ``{"sanctions": [...]}`` or a bare JSON array. Entries that do not
    match :data:`ENTRY_SCHEMA` or name an unknown action are skipped.

    Args:
        response: Model reply text containing JSON.
        originals: Mapping from the text sent to the model (possibly carrying a
            ``[normalized: ...]`` annotation) back to the original message.

    Returns:
        ``(verdicts, ok)``; ``ok`` is False when the payload itself could not be
        read, in which case ``verdicts`` is empty.
    """
    originals = originals or {}
    logger.debug("[PARSE] Parsing classifier reply (%d chars)", len(response))

    try:
        payload = _extract_json_payload(response)
    except ValueError as exc:
        logger.warning("[PARSE] Unreadable verdict payload: %s", exc)
        return [], False

    if isinstance(payload, dict):
        entries = payload.get("sanctions")
    else:
        entries = payload

    if not isinstance(entries, list):
        logger.warning("[PARSE] Verdict payload is not a list, got %s", type(entries).__name__)
        return [], False

    verdicts: List[Verdict] = []
    for item in entries:
        if not _entry_validator.is_valid(item):
            logger.debug("[PARSE] Skipping malformed entry: %r", item)
            continue

        action = ActionKind.parse(item["action"])
        if action is None:
            continue

        raw_trigger = item.get("trigger_message") or "N/A"
        trigger = originals.get(raw_trigger, strip_annotation(raw_trigger))

        verdicts.append(
            Verdict(
                player=item["player"].strip(),
                action=action,
                reason=item["reason"].strip(),
                trigger_text=trigger,
                duration=(item.get("duration") or "").strip(),
            )
        )

    logger.debug("[PARSE] Successfully parsed %d verdicts", len(verdicts))
    return verdicts, True
