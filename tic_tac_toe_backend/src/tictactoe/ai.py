"""Computer opponents.

Each tier is an AIStrategy; the session only ever calls select_move.
"""

import abc
import logging
import random
from enum import Enum
from typing import List, Optional

from .core import Board, Symbol, empty_indices, evaluate

logger = logging.getLogger(__name__)

CENTER = 4
CORNERS = (0, 2, 6, 8)
SIDES = (1, 3, 5, 7)


class AITier(str, Enum):
    RANDOM = "random"
    HEURISTIC = "heuristic"


# PUBLIC_INTERFACE
def winning_moves(board: Board, symbol: Symbol) -> List[int]:
    """Empty indices, ascending, where symbol would complete a line."""
    wins = []
    for i in empty_indices(board):
        cells = list(board)
        cells[i] = symbol
        if evaluate(tuple(cells)).winner is symbol:
            wins.append(i)
    return wins


class AIStrategy(abc.ABC):
    """Picks a cell for the AI, or None when the board is full."""

    tier: AITier

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @abc.abstractmethod
    def select_move(self, board: Board, ai_symbol: Symbol) -> Optional[int]:
        raise NotImplementedError

    def _pick(self, candidates: List[int]) -> Optional[int]:
        if not candidates:
            return None
        return self.rng.choice(candidates)


class RandomStrategy(AIStrategy):
    tier = AITier.RANDOM

    def select_move(self, board: Board, ai_symbol: Symbol) -> Optional[int]:
        return self._pick(empty_indices(board))


class HeuristicStrategy(AIStrategy):
    """Win, block, center, corner, side, then anything left.

    Every winning square is looked for before any blocking square, so a
    win is always preferred to a block.
    """

    tier = AITier.HEURISTIC

    def select_move(self, board: Board, ai_symbol: Symbol) -> Optional[int]:
        wins = winning_moves(board, ai_symbol)
        if wins:
            logger.debug("%s takes the win at %d", ai_symbol.value, wins[0])
            return wins[0]

        blocks = winning_moves(board, ai_symbol.opponent)
        if blocks:
            logger.debug("%s blocks at %d", ai_symbol.value, blocks[0])
            return blocks[0]

        if board[CENTER] is None:
            return CENTER

        open_corners = [i for i in CORNERS if board[i] is None]
        if open_corners:
            return self._pick(open_corners)

        open_sides = [i for i in SIDES if board[i] is None]
        if open_sides:
            return self._pick(open_sides)

        return self._pick(empty_indices(board))


_STRATEGIES = {
    AITier.RANDOM: RandomStrategy,
    AITier.HEURISTIC: HeuristicStrategy,
}


# PUBLIC_INTERFACE
def get_strategy(tier: AITier, rng: Optional[random.Random] = None) -> AIStrategy:
    """Build the strategy object for a tier."""
    return _STRATEGIES[AITier(tier)](rng=rng)
