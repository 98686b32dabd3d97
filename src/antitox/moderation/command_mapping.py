"""Pure mapping from finalized sanctions to moderation command text."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Dict, Mapping

from antitox.datatypes.action_datatypes import ActionKind, Sanction

PERMANENT = "permanent"
ALLOWED_FIELDS = frozenset({"player", "duration", "reason"})


@dataclass(frozen=True, slots=True)
class TemplateRule:
    """How one action kind selects its template.

    Attributes:
        key: Template used for a timed (or untimed) sanction.
        permanent_key: Template used when the duration is ``permanent``.
        default_duration: Which configured default fills a missing duration (``mute``/``ban``).
        permanent_without_duration: Treat a missing duration as permanent.
    """

    key: str
    permanent_key: str | None = None
    default_duration: str | None = None
    permanent_without_duration: bool = False

    def template_keys(self) -> tuple:
        return (self.key,) if self.permanent_key is None else (self.key, self.permanent_key)


TEMPLATE_RULES: Dict[ActionKind, TemplateRule] = {
    ActionKind.WARN: TemplateRule(key="warn"),
    ActionKind.MUTE: TemplateRule(key="mute", default_duration="mute"),
    ActionKind.KICK: TemplateRule(key="kick"),
    ActionKind.BAN: TemplateRule(key="ban", permanent_key="ban_permanent", default_duration="ban"),
    ActionKind.IPBAN: TemplateRule(key="ipban_temporary", permanent_key="ipban", permanent_without_duration=True),
}


class CommandMapper:
    """
    Render one command string per sanction from configured templates.

    Templates use ``str.format`` fields ``{player}``, ``{duration}`` and
    ``{reason}``. Construction fails if an action kind has no rule, a rule's
    template is missing, or a template uses an unknown field.

    Args:
        templates: Template text keyed by ``warn``, ``mute``, ``kick``, ``ban``,
            ``ban_permanent``, ``ipban`` and ``ipban_temporary``.
        default_mute_duration: Used for MUTE when the sanction has no duration.
        default_ban_duration: Used for a non-permanent BAN without duration.
        reason_prefix: Prepended to every reason, e.g. ``[ATOX AI]``.
    """

    def __init__(
        self,
        templates: Mapping[str, str],
        default_mute_duration: str = "1h",
        default_ban_duration: str = "1d",
        reason_prefix: str = "[ATOX AI]",
    ) -> None:
        uncovered = [kind.value for kind in ActionKind if kind not in TEMPLATE_RULES]
        if uncovered:
            raise ValueError(f"No command rule for action kinds: {', '.join(uncovered)}")

        missing = [key for rule in TEMPLATE_RULES.values() for key in rule.template_keys() if not templates.get(key)]
        if missing:
            raise ValueError(f"Missing command templates: {', '.join(missing)}")

        formatter = string.Formatter()
        for key, template in templates.items():
            fields = {name for _, name, _, _ in formatter.parse(template) if name}
            unknown = fields - ALLOWED_FIELDS
            if unknown:
                raise ValueError(f"Command template '{key}' uses unknown fields: {', '.join(sorted(unknown))}")

        self._templates = dict(templates)
        self._defaults = {"mute": default_mute_duration, "ban": default_ban_duration}
        self._reason_prefix = reason_prefix

    def format_reason(self, sanction: Sanction) -> str:
        reason = sanction.reason.replace('"', "'")
        trigger = sanction.trigger_text
        if trigger and trigger != "N/A":
            quoted = trigger.replace('"', "'")
            reason = f'{reason} | Message: "{quoted}"'
        return f"{self._reason_prefix} {reason}".strip()

    def build(self, sanction: Sanction) -> str:
        """Return the command text for ``sanction``."""
        rule = TEMPLATE_RULES[sanction.action]
        duration = sanction.duration.strip() or None
        permanent = duration is not None and duration.lower() == PERMANENT
        if duration is None and rule.permanent_without_duration:
            permanent = True

        if permanent and rule.permanent_key is not None:
            key = rule.permanent_key
        else:
            key = rule.key
            if duration is None and rule.default_duration is not None:
                duration = self._defaults[rule.default_duration]

        return self._templates[key].format(
            player=sanction.player,
            duration=duration or "",
            reason=self.format_reason(sanction),
        )
