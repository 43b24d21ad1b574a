from fastapi import APIRouter, FastAPI, WebSocket, WebSocketDisconnect, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from typing import Optional
from contextlib import asynccontextmanager
from starlette.websockets import WebSocketState

import logging

from .config import EngineConfig, configure_logging
from .core import Symbol
from .history import MatchHistory
from .models import (
    GameView,
    MoveRequest,
    MoveResponse,
    SettingsRequest,
    NamesRequest,
    ReplayRequest,
    MatchRecord,
    MatchStats,
    GameHistoryItem,
    GameHistoryResponse,
    WsMessage,
)
from .scheduler import AsyncioTimer
from .session import MatchSession, ReplayError
from .store import BackgroundStore

logger = logging.getLogger(__name__)

router = APIRouter()


##---- Session ----##
def session_for(app: FastAPI) -> MatchSession:
    """Return the app's game session, creating it on first use.

    Creation is deferred to the first request so the AI timer binds to the
    running event loop.
    """
    if app.state.session is None:
        config: EngineConfig = app.state.config
        store = config.build_store()
        if not config.safe_mode:
            store = BackgroundStore(store)
        app.state.store = store
        history = MatchHistory(store)
        app.state.session = MatchSession(
            history,
            AsyncioTimer(),
            mode=config.mode,
            tier=config.ai_tier,
            ai_delay=config.ai_delay,
        )
        logger.info(
            "Session ready: mode=%s tier=%s, %d games on record",
            config.mode.value,
            config.ai_tier.value,
            len(history),
        )
    return app.state.session


async def get_session(request: Request) -> MatchSession:
    return session_for(request.app)


@router.get("/", tags=["health"])
def health_check():
    """Health check route for backend"""
    return {"message": "Healthy"}


# PUBLIC_INTERFACE
@router.get("/game", response_model=GameView, tags=["game"], summary="Current board and status")
async def get_game(session: MatchSession = Depends(get_session)):
    """Render payload for the live game, or the replayed move while replaying."""
    return session.view()


# PUBLIC_INTERFACE
@router.post("/game/move", response_model=MoveResponse, tags=["game"], summary="Play a cell")
async def make_move(request: MoveRequest, session: MatchSession = Depends(get_session)):
    """Play a cell for the human whose turn it is.

    Refused clicks (taken cell, finished game, AI's turn, replay mode) are
    no-ops and come back with accepted=False rather than an error.

    Args:
        request (MoveRequest): Cell index 0-8.
    Returns:
        MoveResponse: Whether the move was played, and the new view.
    """
    accepted = session.submit_move(request.index)
    return MoveResponse(accepted=accepted, view=session.view())


# PUBLIC_INTERFACE
@router.post("/game/reset", response_model=GameView, tags=["game"], summary="New game")
async def reset_game(session: MatchSession = Depends(get_session)):
    """Start a new game; stats and history are kept."""
    session.reset()
    return session.view()


# PUBLIC_INTERFACE
@router.post("/game/reset_all", response_model=GameView, tags=["game"], summary="New game and wipe stats")
async def reset_all(session: MatchSession = Depends(get_session)):
    """Start a new game and clear stats and history."""
    session.reset_all()
    return session.view()


# PUBLIC_INTERFACE
@router.put("/game/settings", response_model=GameView, tags=["game"], summary="Change mode, tier or symbol")
async def update_settings(request: SettingsRequest, session: MatchSession = Depends(get_session)):
    """Change game mode, AI tier or the human's symbol.

    Only allowed before the human's first move of the current game; all given
    fields are applied together and one new game is started.
    """
    if not session.configure(mode=request.mode, tier=request.tier, human_symbol=request.human_symbol):
        raise HTTPException(status_code=409, detail="Settings can only change before the first move")
    logger.info(
        "Settings: mode=%s tier=%s human=%s",
        session.mode.value,
        session.tier.value,
        session.human_symbol.value,
    )
    return session.view()


# PUBLIC_INTERFACE
@router.put("/game/names", response_model=GameView, tags=["game"], summary="Set player names")
async def update_names(request: NamesRequest, session: MatchSession = Depends(get_session)):
    """Set display names used in the status message."""
    if request.x_name is not None:
        session.set_player_name(Symbol.X, request.x_name)
    if request.o_name is not None:
        session.set_player_name(Symbol.O, request.o_name)
    return session.view()


# PUBLIC_INTERFACE
@router.get("/stats", response_model=MatchStats, tags=["history"], summary="Lifetime stats")
async def get_stats(session: MatchSession = Depends(get_session)):
    return session.history.stats


# PUBLIC_INTERFACE
@router.get("/history", response_model=GameHistoryResponse, tags=["history"], summary="Finished games")
async def get_history(session: MatchSession = Depends(get_session)):
    """Finished games, newest first."""
    history = [
        GameHistoryItem(
            record_id=record.id,
            created_at=record.created_at,
            winner=record.winner,
            mode=record.mode,
            tier=record.tier,
            moves_count=len(record.moves),
            final_board=record.moves[-1].board,
        )
        for record in reversed(session.history.records)
    ]
    return GameHistoryResponse(history=history)


# PUBLIC_INTERFACE
@router.get("/history/{record_id}", response_model=MatchRecord, tags=["history"], summary="One finished game")
async def get_record(record_id: str, session: MatchSession = Depends(get_session)):
    record = session.history.get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return record


# PUBLIC_INTERFACE
@router.post("/replay", response_model=GameView, tags=["replay"], summary="Show a move of a finished game")
async def enter_replay(request: ReplayRequest, session: MatchSession = Depends(get_session)):
    """Show a finished game's board after a given move. The live game is left as it is.

    Args:
        request (ReplayRequest): Record id and 0-based move index.
    Returns:
        GameView: The replayed board with its winning line, if any.
    """
    if session.history.get(request.record_id) is None:
        raise HTTPException(status_code=404, detail="Game not found")
    try:
        session.enter_replay(request.record_id, request.step)
    except ReplayError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return session.view()


# PUBLIC_INTERFACE
@router.delete("/replay", response_model=GameView, tags=["replay"], summary="Back to the live game")
async def exit_replay(session: MatchSession = Depends(get_session)):
    session.exit_replay()
    return session.view()


# PUBLIC_INTERFACE
@router.websocket("/ws/game")
async def websocket_game_updates(websocket: WebSocket):
    """
    WebSocket for the board UI. Connect to ws://host/ws/game.

    Send 'ping' for 'pong', or JSON messages:
    {"action": "move", "index": n}, {"action": "reset"} or {"action": "state"}.
    Every valid JSON message is answered with the current game view.
    """
    await websocket.accept()
    session = session_for(websocket.app)
    try:
        while True:
            if websocket.application_state != WebSocketState.CONNECTED:
                break
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
                continue
            try:
                message = WsMessage.model_validate_json(data)
            except ValidationError:
                await websocket.send_json({"error": "Invalid message"})
                continue
            if message.action == "move":
                session.submit_move(message.index)
            elif message.action == "reset":
                session.reset()
            await websocket.send_json(session.view().model_dump(mode="json"))
    except WebSocketDisconnect:
        pass


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if isinstance(app.state.store, BackgroundStore):
        app.state.store.close()


# PUBLIC_INTERFACE
def create_app(config: Optional[EngineConfig] = None) -> FastAPI:
    """Build the API around a single local game session."""
    config = config or EngineConfig.from_env()
    configure_logging(config.log_level, config.log_file)

    app = FastAPI(
        lifespan=lifespan,
        title="Tic Tac Toe API",
        description="Tic Tac Toe engine: live game, computer opponent, stats, history and replay.",
        version="0.2.0",
        openapi_tags=[
            {"name": "game", "description": "Play the live game"},
            {"name": "history", "description": "Stats and finished games"},
            {"name": "replay", "description": "Step through a finished game"},
            {"name": "ws", "description": "Websocket for the board UI"},
        ],
    )
    app.state.config = config
    app.state.session = None
    app.state.store = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
