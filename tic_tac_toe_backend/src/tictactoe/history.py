"""Completed games and the lifetime statistics that go with them.

Records are only ever appended, or all dropped at once by reset(). Stats are
bumped in the same call that appends the record, then both are written out.
"""

import logging
import uuid
from typing import List, Optional, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from .ai import AITier
from .core import Outcome, Symbol
from .models import GameMode, MatchRecord, MatchStats, MoveRecord
from .store import HISTORY_KEY, STATS_KEY, Store

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(List[MatchRecord])


class MatchHistory:
    def __init__(self, store: Store):
        self.store = store
        self._stats = self._load_stats()
        self._records: List[MatchRecord] = self._load_records()

    def _load_stats(self) -> MatchStats:
        raw = self.store.load(STATS_KEY)
        if raw is None:
            return MatchStats()
        try:
            return MatchStats.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Stored stats are malformed, starting from zero: %s", exc.errors()[:1])
            return MatchStats()

    def _load_records(self) -> List[MatchRecord]:
        raw = self.store.load(HISTORY_KEY)
        if raw is None:
            return []
        try:
            return _records_adapter.validate_python(raw)
        except ValidationError as exc:
            logger.warning("Stored history is malformed, starting empty: %s", exc.errors()[:1])
            return []

    @property
    def stats(self) -> MatchStats:
        return self._stats.model_copy(deep=True)

    @property
    def records(self) -> Tuple[MatchRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> Optional[MatchRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def record_game(
        self,
        moves: Sequence[MoveRecord],
        outcome: Outcome,
        mode: GameMode,
        tier: Optional[AITier] = None,
        human_symbol: Optional[Symbol] = None,
    ) -> MatchRecord:
        """Append a finished game and count it.

        human_symbol is needed in vs-AI mode to tell a human win from an AI win.
        """
        if not outcome.is_terminal:
            raise ValueError("Only finished games can be recorded")
        record = MatchRecord(
            id=uuid.uuid4().hex,
            moves=list(moves),
            winner=outcome.winner,
            winning_line=list(outcome.line) if outcome.line else None,
            mode=mode,
            tier=tier if mode is GameMode.VS_AI else None,
        )
        self._count(outcome.winner, mode, human_symbol)
        self._records.append(record)
        self._save()
        logger.info(
            "Recorded game %s: %s in %d moves",
            record.id,
            f"{outcome.winner.value} won" if outcome.winner else "draw",
            len(record.moves),
        )
        return record

    def _count(self, winner: Optional[Symbol], mode: GameMode, human_symbol: Optional[Symbol]) -> None:
        self._stats.total_games += 1
        if mode is GameMode.TWO_PLAYER:
            entry = self._stats.two_player
            if winner is None:
                entry.draws += 1
            elif winner is Symbol.X:
                entry.x += 1
            else:
                entry.o += 1
            return

        if human_symbol is None:
            raise ValueError("human_symbol is required for vs-AI games")
        entry = self._stats.vs_ai
        if winner is None:
            entry.draws += 1
        elif winner is human_symbol:
            entry.human += 1
        else:
            entry.ai += 1

    def _save(self) -> None:
        self.store.save(STATS_KEY, self._stats.model_dump(mode="json"))
        self.store.save(HISTORY_KEY, _records_adapter.dump_python(self._records, mode="json"))

    def reset(self) -> None:
        """Zero the stats and drop every record."""
        self._stats = MatchStats()
        self._records = []
        self.store.clear(STATS_KEY)
        self.store.clear(HISTORY_KEY)
        logger.info("Stats and history cleared")
