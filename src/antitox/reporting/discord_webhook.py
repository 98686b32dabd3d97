"""
Discord webhook delivery of cycle reports and daily summaries.

Reports are rendered as Discord embeds and posted through a webhook URL, so
no bot account or gateway connection is needed.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

import aiohttp
import discord

from antitox.datatypes.action_datatypes import ActionKind, Sanction
from antitox.moderation.escalation_ledger import LedgerSnapshot
from antitox.reporting.report_sink import CycleReport
from antitox.util.logger import get_logger

logger = get_logger("discord_webhook")

ACTION_EMOJI = {
    ActionKind.WARN: "⚠️",
    ActionKind.MUTE: "\U0001f507",
    ActionKind.KICK: "\U0001f462",
    ActionKind.BAN: "\U0001f528",
    ActionKind.IPBAN: "\U0001f6ab",
}

EMBED_DESCRIPTION_LIMIT = 4096
TRIGGER_PREVIEW_LIMIT = 200
TIMESTAMP_FORMAT = "%m/%d/%Y %H:%M:%S"


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def build_cycle_embed(report: CycleReport, server_name: str, server_type: str) -> discord.Embed:
    """Render a cycle report: green when clean, red with one entry per sanction otherwise."""
    if not report.sanctions:
        embed = discord.Embed(
            title="✅ Analysis Complete - No Sanctions",
            description="No violations were found in the analyzed messages.",
            color=discord.Color.green(),
        )
    else:
        lines: List[str] = [f"**{len(report.sanctions)} sanction(s)** detected.\n"]
        for index, sanction in enumerate(report.sanctions, start=1):
            lines.append(_sanction_lines(index, sanction))
        embed = discord.Embed(
            title="⚠️ Analysis Complete - Sanctions Applied",
            description=truncate("\n".join(lines), EMBED_DESCRIPTION_LIMIT),
            color=discord.Color.red(),
        )

    embed.add_field(name="\U0001f5a5️ Server", value=server_name, inline=True)
    embed.add_field(name="\U0001f3ae Type", value=server_type, inline=True)
    embed.add_field(
        name="\U0001f4ca Stats",
        value=f"{report.total_messages} messages from {report.total_subjects} player(s)",
        inline=True,
    )
    embed.set_footer(
        text=f"{server_name} | {server_type} | cycle {report.cycle_id} | {datetime.now().strftime(TIMESTAMP_FORMAT)}"
    )
    return embed


def _sanction_lines(index: int, sanction: Sanction) -> str:
    duration = f" ({sanction.duration})" if sanction.duration else ""
    header = f"**{index}.** {ACTION_EMOJI[sanction.action]} **{sanction.action}{duration}** → `{sanction.player}`"
    return (
        f"{header}\n"
        f"   • **Reason:** {sanction.reason}\n"
        f"   • **Trigger message:** `{truncate(sanction.trigger_text, TRIGGER_PREVIEW_LIMIT)}`\n"
    )


def build_daily_embed(snapshot: LedgerSnapshot, server_name: str, server_type: str) -> discord.Embed:
    """Render the daily ledger summary."""
    lines = [
        f"**\U0001f4ec Messages analyzed (total):** {snapshot.messages_analyzed}",
        f"**⚖️ Sanctions last 24h:** {snapshot.sanctions_last_24h}",
        f"**\U0001f504 Cycles completed:** {snapshot.cycles}",
        f"**❌ False positives reported:** {snapshot.false_positives}",
        "",
    ]
    if snapshot.by_action:
        lines.append("**Sanctions by type:**")
        lines.extend(f"  {ACTION_EMOJI[kind]} {kind}: {count}" for kind, count in snapshot.by_action.items())
        lines.append("")
    if snapshot.top_players:
        lines.append("**\U0001f3c6 Most sanctioned players:**")
        lines.extend(
            f"  **{rank}.** `{name}` - {count} sanction(s)"
            for rank, (name, count) in enumerate(snapshot.top_players, start=1)
        )

    embed = discord.Embed(
        title=f"\U0001f4ca Daily Summary - {server_name}",
        description=truncate("\n".join(lines), EMBED_DESCRIPTION_LIMIT),
        color=discord.Color.blue(),
    )
    embed.set_footer(text=f"{server_name} | {server_type} | {datetime.now().strftime(TIMESTAMP_FORMAT)}")
    return embed


class DiscordWebhookReportSink:
    """
    Post reports to a Discord webhook.

    Args:
        webhook_url: Full Discord webhook URL.
        server_name: Name shown in embeds.
        server_type: Server type shown in embeds.
        username: Display name used for webhook messages.
        avatar_url: Optional avatar for webhook messages.
    """

    def __init__(
        self,
        webhook_url: str,
        server_name: str,
        server_type: str,
        username: str = "ATOX",
        avatar_url: str | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._server_name = server_name
        self._server_type = server_type
        self._username = username
        self._avatar_url = avatar_url
        self._session: aiohttp.ClientSession | None = None

    async def send_cycle_report(self, report: CycleReport) -> None:
        await self._send(build_cycle_embed(report, self._server_name, self._server_type))

    async def send_daily_report(self, snapshot: LedgerSnapshot) -> None:
        await self._send(build_daily_embed(snapshot, self._server_name, self._server_type))

    async def _send(self, embed: discord.Embed) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        webhook = discord.Webhook.from_url(self._webhook_url, session=self._session)
        kwargs = {"embed": embed, "username": self._username}
        if self._avatar_url:
            kwargs["avatar_url"] = self._avatar_url
        await webhook.send(**kwargs)
        logger.debug("[REPORT] Webhook message sent: %s", embed.title)

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
