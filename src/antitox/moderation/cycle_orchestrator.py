"""
CycleOrchestrator: one analysis cycle from snapshot to report.

State sequence of a cycle:

    IDLE -> FETCHING -> (nothing pending) -> IDLE
                     -> CLASSIFYING -> (failure) -> IDLE, cursor untouched
                                    -> CONSUMED -> DEDUPING -> ESCALATING
                                       -> DISPATCHING -> REPORTING -> IDLE

Timed (scheduler) and forced (operator) triggers run the same sequence. At
most one cycle is in flight; a trigger arriving while one runs is skipped.
Once a batch is consumed, cancelling the cycle no longer stops its sanctions
from being dispatched; :meth:`CycleOrchestrator.drain` waits for them.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Protocol, Tuple

from antitox.datatypes.action_datatypes import ActionKind, Sanction
from antitox.datatypes.classification_datatypes import ClassificationResult, FailureKind
from antitox.moderation.action_dispatcher import CommandDispatcher
from antitox.moderation.command_mapping import CommandMapper
from antitox.moderation.escalation_ledger import DAY_SECONDS, EscalationLedger, SanctionRecord
from antitox.moderation.message_store import MessageStore
from antitox.moderation.severity import resolve_most_severe
from antitox.reporting.report_sink import CycleReport, ReportSink
from antitox.util.logger import get_logger

logger = get_logger("cycle_orchestrator")

REPEAT_OFFENDER_PREFIX = "Repeat offender: "


class CycleState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    CONSUMED = "consumed"
    DEDUPING = "deduping"
    ESCALATING = "escalating"
    DISPATCHING = "dispatching"
    REPORTING = "reporting"


class CycleTrigger(Enum):
    TIMED = "timed"
    FORCED = "forced"


class CycleStatus(Enum):
    SKIPPED_EMPTY = "skipped_empty"
    SKIPPED_BUSY = "skipped_busy"
    FAILED = "failed"
    COMPLETED = "completed"


@dataclass(slots=True)
class CycleOutcome:
    """What one call to :meth:`CycleOrchestrator.run_cycle` did."""

    status: CycleStatus
    trigger: CycleTrigger
    cycle_id: int | None = None
    sanctions: List[Sanction] = field(default_factory=list)
    commands: List[str] = field(default_factory=list)
    total_messages: int = 0
    total_subjects: int = 0
    failure: FailureKind | None = None
    daily_report_sent: bool = False


class Classifier(Protocol):
    async def analyze(self, batch_by_author, context_by_author=None) -> ClassificationResult: ...


class HistoryRepository(Protocol):
    async def append(self, record: SanctionRecord) -> None: ...

    async def update_applied(self, record: SanctionRecord) -> None: ...


def daily_report_every(interval_seconds: float) -> int:
    """Completed cycles per daily report: round(24h / interval), at least 1."""
    if interval_seconds <= 0:
        return 1
    return max(1, round(DAY_SECONDS / interval_seconds))


class CycleOrchestrator:
    """
    Drives analysis cycles over an explicit store, ledger and collaborators.

    Args:
        store: Message buffer shared with the capture front-end.
        classifier: Anything with an ``analyze(batch, context)`` coroutine.
        ledger: Escalation ledger owned by the service.
        mapper: Sanction to command text mapping.
        dispatcher: Serialized command executor.
        report_sink: Receives cycle reports and daily summaries.
        max_age_seconds: Retention horizon applied at the start of each cycle.
        context_per_author: History lines sent per author alongside the batch.
        escalation_durations: Fixed duration per escalated tier.
        daily_report_every: Completed cycles between daily reports.
        daily_report_top: Top-N players listed in the daily report.
        history: Optional persistent sanction history.
    """

    def __init__(
        self,
        store: MessageStore,
        classifier: Classifier,
        ledger: EscalationLedger,
        mapper: CommandMapper,
        dispatcher: CommandDispatcher,
        report_sink: ReportSink,
        max_age_seconds: float = DAY_SECONDS,
        context_per_author: int = 10,
        escalation_durations: Dict[ActionKind, str] | None = None,
        daily_report_every: int = 96,
        daily_report_top: int = 5,
        history: HistoryRepository | None = None,
    ) -> None:
        self._store = store
        self._classifier = classifier
        self._ledger = ledger
        self._mapper = mapper
        self._dispatcher = dispatcher
        self._report_sink = report_sink
        self._max_age = max_age_seconds
        self._context_per_author = context_per_author
        self._escalation_durations = dict(escalation_durations or {ActionKind.MUTE: "1h", ActionKind.BAN: "7d"})
        self._daily_every = max(1, daily_report_every)
        self._daily_top = daily_report_top
        self._history = history

        self._guard = asyncio.Lock()
        self._cycle_ids = itertools.count(1)
        self._completed = 0
        self._state = CycleState.IDLE
        self._settling: asyncio.Future | None = None

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def busy(self) -> bool:
        settling = self._settling is not None and not self._settling.done()
        return self._guard.locked() or settling

    @property
    def completed_cycles(self) -> int:
        return self._completed

    def detach_history(self) -> None:
        """Stop persisting sanctions, e.g. after the history database failed to open."""
        self._history = None

    async def run_cycle(self, trigger: CycleTrigger = CycleTrigger.TIMED) -> CycleOutcome:
        """Run one cycle unless another is already in flight."""
        if self.busy:
            logger.info("[CYCLE] %s trigger ignored: a cycle is already running", trigger.value)
            return CycleOutcome(CycleStatus.SKIPPED_BUSY, trigger)

        async with self._guard:
            try:
                return await self._run(trigger)
            finally:
                if self._settling is None or self._settling.done():
                    self._state = CycleState.IDLE

    async def _run(self, trigger: CycleTrigger) -> CycleOutcome:
        self._state = CycleState.FETCHING
        self._store.purge_older_than(self._max_age)

        batch = self._store.snapshot_for_analysis()
        if batch.is_empty():
            logger.debug("[CYCLE] Nothing pending; skipping %s cycle", trigger.value)
            return CycleOutcome(CycleStatus.SKIPPED_EMPTY, trigger)

        total_messages = batch.total_messages
        total_subjects = batch.total_authors
        context = self._store.get_context(batch.messages_by_author.keys(), self._context_per_author)
        logger.info("[CYCLE] Analyzing %d messages from %d player(s)...", total_messages, total_subjects)

        self._state = CycleState.CLASSIFYING
        result = await self._classifier.analyze(batch.messages_by_author, context)
        if not result.ok:
            logger.warning(
                "[CYCLE] Classification failed (%s). Messages retained (%d msgs); will retry next cycle.",
                result.failure,
                total_messages,
            )
            return CycleOutcome(
                CycleStatus.FAILED,
                trigger,
                total_messages=total_messages,
                total_subjects=total_subjects,
                failure=result.failure,
            )

        # A consumed batch is always dispatched, even if the cycle is cancelled.
        settling = asyncio.ensure_future(self._settle(batch.boundary, result, total_messages))
        self._settling = settling
        cycle_id, sanctions, commands = await asyncio.shield(settling)

        self._state = CycleState.REPORTING
        report = CycleReport(cycle_id, list(sanctions), total_messages, total_subjects)
        try:
            await self._report_sink.send_cycle_report(report)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("[REPORT] Failed to send cycle report: %s", exc)

        self._completed += 1
        daily_sent = False
        if self._completed % self._daily_every == 0:
            daily_sent = await self._send_daily_report()

        return CycleOutcome(
            CycleStatus.COMPLETED,
            trigger,
            cycle_id=cycle_id,
            sanctions=sanctions,
            commands=commands,
            total_messages=total_messages,
            total_subjects=total_subjects,
            daily_report_sent=daily_sent,
        )

    async def _settle(
        self, boundary: float, result: ClassificationResult, total_messages: int
    ) -> Tuple[int, List[Sanction], List[str]]:
        """Consume the batch, then dedup, escalate and dispatch its verdicts."""
        self._state = CycleState.CONSUMED
        cycle_id = next(self._cycle_ids)
        self._store.mark_consumed(boundary)
        self._ledger.record_cycle(total_messages)

        self._state = CycleState.DEDUPING
        verdicts = resolve_most_severe(result.verdicts)

        self._state = CycleState.ESCALATING
        sanctions = [await self._finalize(Sanction.from_verdict(verdict, cycle_id)) for verdict in verdicts]

        self._state = CycleState.DISPATCHING
        commands = [self._mapper.build(sanction) for sanction in sanctions]
        if commands:
            logger.info(
                "[CYCLE] Classifier returned %d verdict(s), %d after dedup+escalation",
                len(result.verdicts),
                len(sanctions),
            )
            self._dispatcher.submit(commands)
        else:
            logger.info("[CYCLE] No sanctions needed this cycle")
        return cycle_id, sanctions, commands

    async def drain(self) -> None:
        """Wait until a consumed batch from a cancelled cycle has been dispatched."""
        settling = self._settling
        if settling is None or settling.done():
            return
        try:
            await settling
        except Exception as exc:
            logger.error("[CYCLE] Failed to finalize consumed batch: %s", exc)
        finally:
            self._state = CycleState.IDLE

    async def _finalize(self, sanction: Sanction) -> Sanction:
        """Record the sanction and apply repeat-offender escalation when it raises severity."""
        record = self._ledger.record_sanction(sanction)
        await self._persist(self._history.append if self._history else None, record)

        escalated = self._ledger.check_escalation(sanction.player)
        if escalated is None or not escalated.outranks(sanction.action):
            return sanction

        logger.warning(
            "[CYCLE] Escalating %s from %s to %s due to history",
            sanction.player,
            sanction.action,
            escalated,
        )
        sanction = replace(
            sanction,
            action=escalated,
            reason=f"{REPEAT_OFFENDER_PREFIX}{sanction.reason}",
            duration=self._escalation_durations.get(escalated, ""),
        )
        updated = self._ledger.record_escalation(sanction)
        if updated is not None:
            await self._persist(self._history.update_applied if self._history else None, updated)
        return sanction

    async def _persist(self, write, record: SanctionRecord) -> None:
        if write is None:
            return
        try:
            await write(record)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("[DATABASE] Failed to persist sanction for %s: %s", record.player, exc)

    async def _send_daily_report(self) -> bool:
        snapshot = self._ledger.snapshot(self._daily_top)
        logger.info("[REPORT] Sending daily summary after %d completed cycles", self._completed)
        try:
            await self._report_sink.send_daily_report(snapshot)
            return True
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("[REPORT] Failed to send daily summary: %s", exc)
            return False
