from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Literal, Optional
from datetime import datetime, timezone
from enum import Enum

from .ai import AITier
from .core import GameStatus, Symbol


class GameMode(str, Enum):
    TWO_PLAYER = "two_player"
    VS_AI = "vs_ai"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class MoveRecord(BaseModel):
    """One move of a finished game: the board right after it was played."""
    model_config = ConfigDict(frozen=True)

    board: List[Optional[Symbol]] = Field(..., min_length=9, max_length=9, description="Board snapshot after the move.")
    symbol: Symbol = Field(..., description="Symbol that made the move.")
    index: int = Field(..., ge=0, le=8, description="Cell that was filled.")


# PUBLIC_INTERFACE
class MatchRecord(BaseModel):
    """A completed game as stored in the history log."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique record id.")
    moves: List[MoveRecord] = Field(..., min_length=1, description="Moves in the order they were played.")
    winner: Optional[Symbol] = Field(None, description="Winning symbol, or None for a draw.")
    winning_line: Optional[List[int]] = Field(None, min_length=3, max_length=3, description="Indices of the winning line.")
    mode: GameMode = Field(..., description="Game mode the match was played in.")
    tier: Optional[AITier] = Field(None, description="AI tier for vs-AI games.")
    created_at: datetime = Field(default_factory=_utcnow, description="When the game finished (UTC).")


# PUBLIC_INTERFACE
class TwoPlayerStats(BaseModel):
    x: int = Field(0, ge=0)
    o: int = Field(0, ge=0)
    draws: int = Field(0, ge=0)


# PUBLIC_INTERFACE
class VsAIStats(BaseModel):
    human: int = Field(0, ge=0)
    ai: int = Field(0, ge=0)
    draws: int = Field(0, ge=0)


# PUBLIC_INTERFACE
class MatchStats(BaseModel):
    """Lifetime counters, split by game mode."""
    total_games: int = Field(0, ge=0, description="Games finished in any mode.")
    two_player: TwoPlayerStats = Field(default_factory=TwoPlayerStats)
    vs_ai: VsAIStats = Field(default_factory=VsAIStats)


# PUBLIC_INTERFACE
class ReplayPosition(BaseModel):
    record_id: str
    step: int = Field(..., description="0-based index into the record's moves.")
    total_steps: int
    winner: Optional[Symbol] = None


# PUBLIC_INTERFACE
class GameView(BaseModel):
    """Everything the UI needs to draw one frame."""
    board: List[Optional[Symbol]] = Field(..., description="Live board, or the replayed snapshot while replaying.")
    status: GameStatus
    current_turn: Optional[Symbol] = Field(None, description="Symbol to move, None once the game is over.")
    winner: Optional[Symbol] = None
    winning_line: Optional[List[int]] = Field(None, description="Cells to highlight.")
    message: str = Field(..., description="Status text, e.g. 'Next player: Player X (X)'.")
    clickable: List[int] = Field(default_factory=list, description="Cells a click would currently play.")
    mode: GameMode
    tier: AITier
    human_symbol: Symbol
    player_names: Dict[Symbol, str]
    moves_made: int
    ai_pending: bool = Field(False, description="An AI move is scheduled and not yet played.")
    replay: Optional[ReplayPosition] = None


# PUBLIC_INTERFACE
class MoveRequest(BaseModel):
    """Request model for playing a cell."""
    index: int = Field(..., description="Cell index 0-8 (row-major). Anything else is ignored.")


# PUBLIC_INTERFACE
class MoveResponse(BaseModel):
    """Response after a move; accepted is False when the click was a no-op."""
    accepted: bool
    view: GameView


# PUBLIC_INTERFACE
class SettingsRequest(BaseModel):
    """Change mode, AI tier or the human's symbol. Only allowed before the first move."""
    mode: Optional[GameMode] = None
    tier: Optional[AITier] = None
    human_symbol: Optional[Symbol] = None


# PUBLIC_INTERFACE
class NamesRequest(BaseModel):
    x_name: Optional[str] = Field(None, min_length=1, max_length=40, description="Display name for X.")
    o_name: Optional[str] = Field(None, min_length=1, max_length=40, description="Display name for O.")


# PUBLIC_INTERFACE
class ReplayRequest(BaseModel):
    record_id: str = Field(..., description="History record to replay.")
    step: int = Field(0, ge=0, description="0-based move index.")


# PUBLIC_INTERFACE
class GameHistoryItem(BaseModel):
    record_id: str
    created_at: datetime
    winner: Optional[Symbol]
    mode: GameMode
    tier: Optional[AITier] = None
    moves_count: int
    final_board: List[Optional[Symbol]]


# PUBLIC_INTERFACE
class GameHistoryResponse(BaseModel):
    history: List[GameHistoryItem]


# PUBLIC_INTERFACE
class WsMessage(BaseModel):
    """JSON message sent by the board UI over the websocket."""
    action: Literal["move", "reset", "state"]
    index: Optional[int] = Field(None, description="Cell index for 'move'.")
