"""
Persistent sanction history so repeat-offender escalation survives restarts.

The ledger stays the authority during a run; this repository only appends
each recorded sanction and hands back recent records at startup.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from antitox.database.db_connection import ConnectionManager
from antitox.datatypes.action_datatypes import ActionKind
from antitox.moderation.escalation_ledger import SanctionRecord
from antitox.util.logger import get_logger

logger = get_logger("sanction_history")

SCHEMA_VERSION = 1

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sanction_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        player TEXT NOT NULL,
        player_key TEXT NOT NULL,
        action TEXT NOT NULL,
        applied_action TEXT NOT NULL,
        reason TEXT NOT NULL,
        trigger_text TEXT NOT NULL,
        cycle_id INTEGER NOT NULL,
        timestamp REAL NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_sanction_history_timestamp ON sanction_history(timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_sanction_history_player ON sanction_history(player_key, timestamp)",
]


class SanctionHistoryRepository:
    """
    aiosqlite-backed store of :class:`SanctionRecord` rows.

    Args:
        db_path: SQLite database file.
        connection: Optional shared :class:`ConnectionManager`.
    """

    def __init__(self, db_path: Path, connection: ConnectionManager | None = None) -> None:
        self.db_path = db_path
        self._db = connection or ConnectionManager()
        self._initialized = False

    async def initialize(self) -> bool:
        """Open the database and create the schema. Returns False on failure."""
        if self._initialized:
            return True
        try:
            await self._db.open(self.db_path)
            async with self._db.transaction() as conn:
                for statement in _SCHEMA:
                    await conn.execute(statement)
                cursor = await conn.execute("SELECT version FROM schema_version")
                if await cursor.fetchone() is None:
                    await conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
            self._initialized = True
            logger.info("[DATABASE] Sanction history ready at %s", self.db_path)
            return True
        except Exception as exc:
            logger.error("[DATABASE] Sanction history initialization failed: %s", exc)
            return False

    async def append(self, record: SanctionRecord) -> None:
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO sanction_history
                    (player, player_key, action, applied_action, reason, trigger_text, cycle_id, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.player,
                    record.player.casefold(),
                    record.action.value,
                    record.applied_action.value,
                    record.reason,
                    record.trigger_text,
                    record.cycle_id,
                    record.timestamp,
                ),
            )

    async def update_applied(self, record: SanctionRecord) -> None:
        """Store the escalated action for the player's record in ``record.cycle_id``."""
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                UPDATE sanction_history SET applied_action = ?, reason = ?
                WHERE player_key = ? AND cycle_id = ? AND timestamp = ?
                """,
                (
                    record.applied_action.value,
                    record.reason,
                    record.player.casefold(),
                    record.cycle_id,
                    record.timestamp,
                ),
            )

    async def load_since(self, cutoff: float) -> List[SanctionRecord]:
        """Return records with ``timestamp >= cutoff``, oldest first."""
        async with self._db.read() as conn:
            cursor = await conn.execute(
                """
                SELECT player, action, applied_action, reason, trigger_text, cycle_id, timestamp
                FROM sanction_history WHERE timestamp >= ? ORDER BY timestamp ASC, id ASC
                """,
                (cutoff,),
            )
            rows = await cursor.fetchall()

        records: List[SanctionRecord] = []
        for row in rows:
            action = ActionKind.parse(row["action"])
            applied = ActionKind.parse(row["applied_action"])
            if action is None or applied is None:
                logger.warning("[DATABASE] Skipping history row with unknown action: %s", dict(row))
                continue
            records.append(
                SanctionRecord(
                    player=row["player"],
                    action=action,
                    applied_action=applied,
                    reason=row["reason"],
                    trigger_text=row["trigger_text"],
                    timestamp=row["timestamp"],
                    cycle_id=row["cycle_id"],
                )
            )
        return records

    async def close(self) -> None:
        await self._db.close()
        self._initialized = False
