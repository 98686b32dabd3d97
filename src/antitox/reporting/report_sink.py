"""Report payloads and the sink interface they are delivered through."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol

from antitox.datatypes.action_datatypes import Sanction
from antitox.moderation.escalation_ledger import LedgerSnapshot
from antitox.util.logger import get_logger

logger = get_logger("report_sink")


@dataclass(frozen=True, slots=True)
class CycleReport:
    """Outcome of one completed cycle."""

    cycle_id: int
    sanctions: List[Sanction] = field(default_factory=list)
    total_messages: int = 0
    total_subjects: int = 0


class ReportSink(Protocol):
    """Receives per-cycle reports and the periodic ledger summary."""

    async def send_cycle_report(self, report: CycleReport) -> None: ...

    async def send_daily_report(self, snapshot: LedgerSnapshot) -> None: ...


class LoggingReportSink:
    """Report sink that writes reports to the antitox log."""

    async def send_cycle_report(self, report: CycleReport) -> None:
        if not report.sanctions:
            logger.info(
                "[REPORT] Cycle %d: no sanctions (%d msgs from %d players)",
                report.cycle_id,
                report.total_messages,
                report.total_subjects,
            )
            return
        lines = ", ".join(f"{s.action}{f' ({s.duration})' if s.duration else ''} -> {s.player}" for s in report.sanctions)
        logger.info(
            "[REPORT] Cycle %d: %d sanctions (%d msgs from %d players): %s",
            report.cycle_id,
            len(report.sanctions),
            report.total_messages,
            report.total_subjects,
            lines,
        )

    async def send_daily_report(self, snapshot: LedgerSnapshot) -> None:
        by_action = " ".join(f"{kind}:{count}" for kind, count in snapshot.by_action.items())
        top = ", ".join(f"{name}={count}" for name, count in snapshot.top_players)
        logger.info(
            "[REPORT] Daily summary: analyzed=%d sanctions_24h=%d cycles=%d false_positives=%d by_type=[%s] top=[%s]",
            snapshot.messages_analyzed,
            snapshot.sanctions_last_24h,
            snapshot.cycles,
            snapshot.false_positives,
            by_action,
            top,
        )
