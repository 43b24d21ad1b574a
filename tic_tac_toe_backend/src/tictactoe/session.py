"""Live game state machine.

A MatchSession owns the board and turn of the game in progress. It records
finished games in a MatchHistory and plays the AI's turns through a Timer.
Every reset bumps ``generation``; an AI callback scheduled under an older
generation does nothing when it fires.
"""

import logging
import random
from functools import partial
from typing import Any, Dict, List, Optional

from .ai import AIStrategy, AITier, get_strategy
from .core import (
    ONGOING,
    Board,
    GameStatus,
    IllegalMove,
    Outcome,
    Symbol,
    apply_move,
    empty_indices,
    evaluate,
    new_board,
)
from .history import MatchHistory
from .models import GameMode, GameView, MatchRecord, MoveRecord, ReplayPosition
from .scheduler import Timer
from .store import PLAYER_SYMBOL_KEY

logger = logging.getLogger(__name__)

DEFAULT_AI_DELAY = 0.75
STARTING_SYMBOL = Symbol.X
DEFAULT_NAMES = {Symbol.X: "Player X", Symbol.O: "Player O"}
AI_NAME = "Computer"


class ReplayError(LookupError):
    """Unknown history record or a step outside its moves."""


class ReplayView:
    """Read-only window onto one move of a recorded game."""

    def __init__(self, record: MatchRecord, step: int = 0):
        self.record = record
        self.step = self._check(step)

    def _check(self, step: int) -> int:
        if not 0 <= step < len(self.record.moves):
            raise ReplayError(
                f"Step {step} is outside game {self.record.id} ({len(self.record.moves)} moves)"
            )
        return step

    def go_to(self, step: int) -> None:
        self.step = self._check(step)

    @property
    def total_steps(self) -> int:
        return len(self.record.moves)

    @property
    def board(self) -> Board:
        return tuple(self.record.moves[self.step].board)

    @property
    def outcome(self) -> Outcome:
        return evaluate(self.board)

    def position(self) -> ReplayPosition:
        return ReplayPosition(
            record_id=self.record.id,
            step=self.step,
            total_steps=self.total_steps,
            winner=self.record.winner,
        )


class MatchSession:
    def __init__(
        self,
        history: MatchHistory,
        timer: Timer,
        mode: GameMode = GameMode.VS_AI,
        tier: AITier = AITier.HEURISTIC,
        ai_delay: float = DEFAULT_AI_DELAY,
        rng: Optional[random.Random] = None,
    ):
        self.history = history
        self.timer = timer
        self.ai_delay = ai_delay
        self.rng = rng
        self.mode = GameMode(mode)
        self.tier = AITier(tier)
        self.strategy: AIStrategy = get_strategy(self.tier, rng=rng)
        self.human_symbol = self._load_symbol_preference()
        self.names: Dict[Symbol, str] = dict(DEFAULT_NAMES)
        self.generation = 0
        self.replay: Optional[ReplayView] = None
        self.last_record: Optional[MatchRecord] = None
        self._pending: Optional[Any] = None
        self._new_game()

    def _load_symbol_preference(self) -> Symbol:
        raw = self.history.store.load(PLAYER_SYMBOL_KEY)
        if raw is None:
            return STARTING_SYMBOL
        try:
            return Symbol(raw)
        except ValueError:
            logger.warning("Ignoring stored player symbol %r", raw)
            return STARTING_SYMBOL

    @property
    def ai_symbol(self) -> Symbol:
        return self.human_symbol.opponent

    @property
    def status(self) -> GameStatus:
        return self.outcome.status

    @property
    def moves_made(self) -> int:
        return len(self.moves)

    @property
    def ai_pending(self) -> bool:
        return self._pending is not None

    def is_ai_turn(self) -> bool:
        return (
            self.mode is GameMode.VS_AI
            and self.outcome.status is GameStatus.PLAYING
            and self.current == self.ai_symbol
        )

    def _new_game(self) -> None:
        self.generation += 1
        self._cancel_pending()
        self.board: Board = new_board()
        self.current = STARTING_SYMBOL
        self.outcome: Outcome = ONGOING
        self.moves: List[MoveRecord] = []
        self.replay = None
        self._schedule_ai_if_due()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self.timer.cancel(self._pending)
            self._pending = None

    # PUBLIC_INTERFACE
    def submit_move(self, index: int) -> bool:
        """Play a human move. Returns False, changing nothing, when the move is refused."""
        if self.replay is not None:
            logger.debug("Move %r ignored: replay mode", index)
            return False
        if self.outcome.is_terminal:
            logger.debug("Move %r ignored: game is over", index)
            return False
        if self.is_ai_turn():
            logger.debug("Move %r ignored: waiting for the AI", index)
            return False
        return self._play(index, self.current)

    def _play(self, index: int, symbol: Symbol) -> bool:
        try:
            self.board = apply_move(self.board, index, symbol)
        except IllegalMove as exc:
            logger.debug("%s", exc)
            return False
        self.moves.append(MoveRecord(board=list(self.board), symbol=symbol, index=index))
        outcome = evaluate(self.board)
        if outcome.is_terminal:
            self._finish(outcome)
        else:
            self.current = symbol.opponent
            self._schedule_ai_if_due()
        return True

    def _finish(self, outcome: Outcome) -> None:
        self.outcome = outcome
        self._cancel_pending()
        self.last_record = self.history.record_game(
            self.moves,
            outcome,
            self.mode,
            tier=self.tier,
            human_symbol=self.human_symbol,
        )

    def _schedule_ai_if_due(self) -> None:
        if not self.is_ai_turn():
            return
        if self.ai_delay <= 0:
            self._run_ai_turn(self.generation)
            return
        self._pending = self.timer.schedule(self.ai_delay, partial(self._run_ai_turn, self.generation))

    def _run_ai_turn(self, generation: int) -> None:
        if generation != self.generation:
            logger.debug("Dropping AI move from game generation %d", generation)
            return
        self._pending = None
        if not self.is_ai_turn():
            return
        index = self.strategy.select_move(self.board, self.ai_symbol)
        if index is None:
            logger.warning("AI found no move on a full board; treating as a draw")
            self._finish(Outcome(GameStatus.DRAW))
            return
        logger.debug("AI (%s, %s) plays %d", self.ai_symbol.value, self.tier.value, index)
        self._play(index, self.ai_symbol)

    # PUBLIC_INTERFACE
    def reset(self) -> None:
        """Start a new game. Stats and history are kept."""
        self._new_game()
        logger.info("New game started (mode=%s, human=%s)", self.mode.value, self.human_symbol.value)

    # PUBLIC_INTERFACE
    def reset_all(self) -> None:
        """Start a new game and wipe stats and history."""
        self.history.reset()
        self.last_record = None
        self.reset()

    @property
    def settings_locked(self) -> bool:
        """True once a human has moved in the current game.

        The AI's automatic opening move does not count.
        """
        if self.mode is GameMode.VS_AI:
            return any(move.symbol == self.human_symbol for move in self.moves)
        return bool(self.moves)

    # PUBLIC_INTERFACE
    def configure(
        self,
        mode: Optional[GameMode] = None,
        tier: Optional[AITier] = None,
        human_symbol: Optional[Symbol] = None,
    ) -> bool:
        """Apply mode, AI tier and human symbol together, then start one new game.

        Returns False, changing nothing, once settings are locked.
        """
        if self.settings_locked:
            return False
        if mode is not None:
            self.mode = GameMode(mode)
        if tier is not None:
            self.tier = AITier(tier)
            self.strategy = get_strategy(self.tier, rng=self.rng)
        if human_symbol is not None:
            self.human_symbol = Symbol(human_symbol)
            self.history.store.save(PLAYER_SYMBOL_KEY, self.human_symbol.value)
        self.reset()
        return True

    def choose_symbol(self, symbol: Symbol) -> bool:
        return self.configure(human_symbol=symbol)

    def set_mode(self, mode: GameMode, tier: Optional[AITier] = None) -> bool:
        return self.configure(mode=mode, tier=tier)

    def set_player_name(self, symbol: Symbol, name: str) -> None:
        name = name.strip()
        self.names[Symbol(symbol)] = name or DEFAULT_NAMES[Symbol(symbol)]

    def display_name(self, symbol: Symbol) -> str:
        if self.mode is GameMode.VS_AI and symbol is self.ai_symbol and self.names[symbol] == DEFAULT_NAMES[symbol]:
            return AI_NAME
        return self.names[symbol]

    # PUBLIC_INTERFACE
    def enter_replay(self, record_id: str, step: int = 0) -> ReplayView:
        """Show a recorded game at a given move without touching the live game."""
        record = self.history.get(record_id)
        if record is None:
            raise ReplayError(f"No recorded game with id {record_id!r}")
        self.replay = ReplayView(record, step)
        return self.replay

    def step_replay(self, step: int) -> ReplayView:
        if self.replay is None:
            raise ReplayError("Not in replay mode")
        self.replay.go_to(step)
        return self.replay

    def exit_replay(self) -> None:
        self.replay = None

    # PUBLIC_INTERFACE
    def status_message(self) -> str:
        if self.replay is not None:
            replay = self.replay
            return f"Replaying game {replay.record.id[:8]}: move {replay.step + 1} of {replay.total_steps}"
        if self.outcome.status is GameStatus.WON:
            return f"{self.display_name(self.outcome.winner)} wins!"
        if self.outcome.status is GameStatus.DRAW:
            return "It's a draw!"
        return f"Next player: {self.display_name(self.current)} ({self.current.value})"

    def clickable(self) -> List[int]:
        if self.replay is not None or self.outcome.is_terminal or self.is_ai_turn():
            return []
        return empty_indices(self.board)

    # PUBLIC_INTERFACE
    def view(self) -> GameView:
        """Build the render payload for the current frame."""
        if self.replay is not None:
            board, outcome = self.replay.board, self.replay.outcome
            current = None
        else:
            board, outcome = self.board, self.outcome
            current = None if outcome.is_terminal else self.current
        return GameView(
            board=list(board),
            status=outcome.status,
            current_turn=current,
            winner=outcome.winner,
            winning_line=list(outcome.line) if outcome.line else None,
            message=self.status_message(),
            clickable=self.clickable(),
            mode=self.mode,
            tier=self.tier,
            human_symbol=self.human_symbol,
            player_names={symbol: self.display_name(symbol) for symbol in Symbol},
            moves_made=self.moves_made,
            ai_pending=self.ai_pending,
            replay=self.replay.position() if self.replay is not None else None,
        )
