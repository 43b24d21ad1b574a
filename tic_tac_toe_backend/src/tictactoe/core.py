from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple


class Symbol(str, Enum):
    """Marker placed on the board by a player or the AI."""

    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Symbol":
        return Symbol.O if self is Symbol.X else Symbol.X


class GameStatus(str, Enum):
    PLAYING = "playing"
    WON = "won"
    DRAW = "draw"


Cell = Optional[Symbol]
Board = Tuple[Cell, ...]

BOARD_SIZE = 9

# Rows top to bottom, columns left to right, then both diagonals.
# The order decides which line is reported when one move completes two.
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class IllegalMove(ValueError):
    """Raised when a move cannot be applied to a board."""

    def __init__(self, index: object, reason: str):
        super().__init__(f"Illegal move at {index!r}: {reason}")
        self.index = index
        self.reason = reason


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating a board: still playing, won on a line, or drawn."""

    status: GameStatus
    winner: Optional[Symbol] = None
    line: Optional[Tuple[int, int, int]] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not GameStatus.PLAYING


ONGOING = Outcome(GameStatus.PLAYING)
DRAW = Outcome(GameStatus.DRAW)


# PUBLIC_INTERFACE
def new_board() -> Board:
    """Return an empty 3x3 board."""
    return (None,) * BOARD_SIZE


# PUBLIC_INTERFACE
def to_board(cells: Sequence[Optional[str]]) -> Board:
    """Build a board from a sequence of 'X', 'O' or None values."""
    if len(cells) != BOARD_SIZE:
        raise ValueError(f"A board needs {BOARD_SIZE} cells, got {len(cells)}")
    return tuple(Symbol(cell) if cell is not None else None for cell in cells)


# PUBLIC_INTERFACE
def empty_indices(board: Board) -> List[int]:
    return [i for i, cell in enumerate(board) if cell is None]


# PUBLIC_INTERFACE
def is_full(board: Board) -> bool:
    return all(cell is not None for cell in board)


# PUBLIC_INTERFACE
def evaluate(board: Board) -> Outcome:
    """Check the board for a winner or a draw.

    Lines are scanned in WINNING_LINES order and the first complete one is
    returned. A full board with no complete line is a draw.
    """
    for a, b, c in WINNING_LINES:
        if board[a] is not None and board[a] == board[b] == board[c]:
            return Outcome(GameStatus.WON, winner=board[a], line=(a, b, c))
    if is_full(board):
        return DRAW
    return ONGOING


# PUBLIC_INTERFACE
def apply_move(board: Board, index: int, symbol: Symbol) -> Board:
    """Place symbol at index and return the new board.

    The input board is left untouched. Raises IllegalMove for an index
    outside 0-8, an occupied cell, or a board that is already decided.
    """
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < BOARD_SIZE:
        raise IllegalMove(index, "index out of range")
    if board[index] is not None:
        raise IllegalMove(index, f"cell already taken by {board[index].value}")
    if evaluate(board).is_terminal:
        raise IllegalMove(index, "game is already over")
    cells = list(board)
    cells[index] = symbol
    return tuple(cells)


# PUBLIC_INTERFACE
def serialize_board(board: Board) -> List[Optional[str]]:
    return [cell.value if cell is not None else None for cell in board]
