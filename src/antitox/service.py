"""
ModerationService: wires the analysis engine together and owns its state.

The service owns the message store, the escalation ledger and every worker.
Hosts interact with it through a handful of calls:

- ``capture(author, text)`` from the chat source (any thread)
- ``await start()`` / ``await shutdown()`` around the event loop lifetime
- ``await force_analysis()`` for an operator-triggered cycle
- ``report_false_positive()`` and ``status()`` for operator tooling
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable

from antitox.ai.classifier_adapter import ClassifierAdapter
from antitox.configuration.app_configuration import AppConfig
from antitox.database.sanction_history import SanctionHistoryRepository
from antitox.moderation.action_dispatcher import CommandDispatcher, CommandExecutor
from antitox.moderation.chat_capture import ChatCapture
from antitox.moderation.command_mapping import CommandMapper
from antitox.moderation.cycle_orchestrator import (
    Classifier,
    CycleOrchestrator,
    CycleOutcome,
    CycleTrigger,
    daily_report_every,
)
from antitox.moderation.escalation_ledger import EscalationLedger
from antitox.moderation.message_store import MessageStore
from antitox.reporting.discord_webhook import DiscordWebhookReportSink
from antitox.reporting.report_sink import LoggingReportSink, ReportSink
from antitox.scheduler.analysis_scheduler import AnalysisScheduler
from antitox.util.logger import get_logger

logger = get_logger("moderation_service")


@dataclass(frozen=True, slots=True)
class ServiceStatus:
    stored_messages: int
    distinct_authors: int
    pending_messages: int
    messages_analyzed: int
    cycles: int
    total_sanctions: int
    false_positives: int
    commands_executed: int
    commands_failed: int
    scheduler_running: bool


class ModerationService:
    """
    Facade over store, capture, classifier, ledger, orchestrator and workers.

    Args:
        store: Message buffer.
        capture: Capture front-end writing into ``store``.
        ledger: Escalation ledger.
        orchestrator: Cycle driver built over the same store and ledger.
        dispatcher: Command executor used by the orchestrator.
        interval_seconds: Polling interval of the timed trigger.
        escalation_window_seconds: How far back persisted history is restored.
        history: Optional persistent sanction history.
        report_sink: Sink closed on shutdown when it supports ``close()``.
    """

    def __init__(
        self,
        store: MessageStore,
        capture: ChatCapture,
        ledger: EscalationLedger,
        orchestrator: CycleOrchestrator,
        dispatcher: CommandDispatcher,
        interval_seconds: float,
        escalation_window_seconds: float,
        history: SanctionHistoryRepository | None = None,
        report_sink: ReportSink | None = None,
    ) -> None:
        self.store = store
        self.capture_front = capture
        self.ledger = ledger
        self.orchestrator = orchestrator
        self.dispatcher = dispatcher
        self._history = history
        self._report_sink = report_sink
        self._escalation_window = escalation_window_seconds
        self.scheduler = AnalysisScheduler(self._timed_cycle, lambda: interval_seconds)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        execute: CommandExecutor,
        classifier: Classifier | None = None,
        report_sink: ReportSink | None = None,
        bypass: Callable[[str], bool] | None = None,
    ) -> ModerationService:
        """Build a service from ``app_config.yml`` settings.

        The Discord webhook sink is used when the webhook URL environment
        variable is set, otherwise reports go to the log.
        """
        ai = config.ai_settings
        moderation = config.moderation
        reporting = config.reporting

        store = MessageStore()
        capture = ChatCapture(store, dedup_window=moderation.capture_dedup_window_seconds, bypass=bypass)
        ledger = EscalationLedger(
            warn_threshold=moderation.warn_threshold,
            mute_threshold=moderation.mute_threshold,
            window_seconds=moderation.escalation_window_seconds,
        )
        mapper = CommandMapper(
            moderation.command_templates,
            default_mute_duration=moderation.default_mute_duration,
            default_ban_duration=moderation.default_ban_duration,
            reason_prefix=moderation.reason_prefix,
        )
        dispatcher = CommandDispatcher(execute)

        if report_sink is None:
            webhook_url = os.getenv(reporting.webhook_url_env)
            if webhook_url:
                report_sink = DiscordWebhookReportSink(
                    webhook_url,
                    server_name=reporting.server_name,
                    server_type=ai.server_type,
                    username=reporting.username,
                    avatar_url=reporting.avatar_url,
                )
            else:
                logger.warning(
                    "[REPORT] %s not set; cycle reports will only be logged", reporting.webhook_url_env
                )
                report_sink = LoggingReportSink()

        database_path = config.database_path
        history = SanctionHistoryRepository(database_path) if database_path is not None else None

        orchestrator = CycleOrchestrator(
            store=store,
            classifier=classifier or ClassifierAdapter(ai),
            ledger=ledger,
            mapper=mapper,
            dispatcher=dispatcher,
            report_sink=report_sink,
            max_age_seconds=moderation.message_max_age_seconds,
            context_per_author=ai.context_messages_per_player,
            escalation_durations=moderation.escalation_durations,
            daily_report_every=daily_report_every(moderation.analysis_interval_seconds),
            daily_report_top=moderation.daily_report_top_players,
            history=history,
        )
        return cls(
            store=store,
            capture=capture,
            ledger=ledger,
            orchestrator=orchestrator,
            dispatcher=dispatcher,
            interval_seconds=moderation.analysis_interval_seconds,
            escalation_window_seconds=moderation.escalation_window_seconds,
            history=history,
            report_sink=report_sink,
        )

    # ------------------------------------------------------------------
    # Chat source
    # ------------------------------------------------------------------

    def capture(self, author: str, text: str, source: str = "chat") -> bool:
        return self.capture_front.capture(author, text, source)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Restore persisted history, then start the dispatcher and the timed trigger."""
        if self._history is not None:
            if await self._history.initialize():
                try:
                    cutoff = self.ledger.now() - self._escalation_window
                    self.ledger.restore(await self._history.load_since(cutoff))
                except Exception as exc:
                    logger.error("[DATABASE] Failed to restore sanction history: %s", exc)
            else:
                logger.warning("[DATABASE] Continuing without persistent sanction history")
                self._history = None
                self.orchestrator.detach_history()

        self.dispatcher.start()
        self.scheduler.start()
        logger.info("[SERVICE] Moderation service started")

    async def shutdown(self) -> None:
        await self.scheduler.shutdown()
        await self.orchestrator.drain()
        await self.dispatcher.shutdown()
        close = getattr(self._report_sink, "close", None)
        if close is not None:
            try:
                await close()
            except Exception as exc:
                logger.error("[REPORT] Failed to close report sink: %s", exc)
        if self._history is not None:
            await self._history.close()
        logger.info("[SERVICE] Moderation service stopped")

    # ------------------------------------------------------------------
    # Operator controls
    # ------------------------------------------------------------------

    async def force_analysis(self) -> CycleOutcome:
        """Run a cycle now; skipped when one is already in flight."""
        return await self.orchestrator.run_cycle(CycleTrigger.FORCED)

    def report_false_positive(self) -> int:
        count = self.ledger.report_false_positive()
        logger.info("[LEDGER] False positive reported (total=%d)", count)
        return count

    def status(self) -> ServiceStatus:
        return ServiceStatus(
            stored_messages=len(self.store),
            distinct_authors=self.store.author_count(),
            pending_messages=self.store.pending_count(),
            messages_analyzed=self.ledger.messages_analyzed,
            cycles=self.ledger.cycles,
            total_sanctions=self.ledger.total_sanctions,
            false_positives=self.ledger.false_positives,
            commands_executed=self.dispatcher.executed,
            commands_failed=self.dispatcher.failed,
            scheduler_running=self.scheduler.running,
        )

    async def _timed_cycle(self) -> CycleOutcome:
        return await self.orchestrator.run_cycle(CycleTrigger.TIMED)
