import pytest

from tictactoe.ai import AITier
from tictactoe.core import DRAW, ONGOING, Symbol, apply_move, evaluate, new_board
from tictactoe.history import MatchHistory
from tictactoe.models import GameMode, MoveRecord
from tictactoe.store import HISTORY_KEY, STATS_KEY, JsonFileStore, MemoryStore


def play(indices, first=Symbol.X):
    """Play indices alternately from an empty board; return moves and final outcome."""
    board, symbol, moves = new_board(), first, []
    for index in indices:
        board = apply_move(board, index, symbol)
        moves.append(MoveRecord(board=list(board), symbol=symbol, index=index))
        symbol = symbol.opponent
    return moves, evaluate(board)


X_WINS = [0, 3, 1, 4, 2]
DRAWN = [0, 1, 2, 3, 4, 6, 5, 8, 7]


def test_draw_counts_only_as_draw(history):
    moves, outcome = play(DRAWN)
    assert outcome == DRAW
    record = history.record_game(moves, outcome, GameMode.TWO_PLAYER)
    assert record.winner is None
    assert record.winning_line is None
    assert record.tier is None
    stats = history.stats
    assert stats.total_games == 1
    assert (stats.two_player.x, stats.two_player.o, stats.two_player.draws) == (0, 0, 1)
    assert stats.vs_ai.draws == 0
    assert len(history) == 1


def test_vs_ai_counts_by_role(history):
    moves, outcome = play(X_WINS)
    history.record_game(moves, outcome, GameMode.VS_AI, tier=AITier.RANDOM, human_symbol=Symbol.O)
    history.record_game(moves, outcome, GameMode.VS_AI, tier=AITier.RANDOM, human_symbol=Symbol.X)
    stats = history.stats
    assert (stats.vs_ai.human, stats.vs_ai.ai, stats.vs_ai.draws) == (1, 1, 0)
    assert stats.two_player.x == 0
    assert stats.total_games == 2


def test_record_keeps_moves_and_line(history):
    moves, outcome = play(X_WINS)
    record = history.record_game(moves, outcome, GameMode.VS_AI, tier=AITier.HEURISTIC, human_symbol=Symbol.X)
    assert record.winner is Symbol.X
    assert record.winning_line == [0, 1, 2]
    assert record.tier is AITier.HEURISTIC
    assert [m.index for m in record.moves] == X_WINS
    assert history.get(record.id) == record
    assert history.get("missing") is None


def test_unfinished_game_is_rejected(history):
    moves, _ = play([0, 1])
    with pytest.raises(ValueError):
        history.record_game(moves, ONGOING, GameMode.TWO_PLAYER)
    assert len(history) == 0


def test_stats_property_is_a_copy(history):
    history.stats.total_games = 99
    assert history.stats.total_games == 0


def test_history_survives_restart(tmp_path):
    store = JsonFileStore(tmp_path)
    moves, outcome = play(X_WINS)
    record = MatchHistory(store).record_game(moves, outcome, GameMode.TWO_PLAYER)

    reloaded = MatchHistory(JsonFileStore(tmp_path))
    assert reloaded.records == (record,)
    assert reloaded.stats.two_player.x == 1
    assert reloaded.stats.total_games == 1


def test_reset_clears_everything(store):
    history = MatchHistory(store)
    moves, outcome = play(DRAWN)
    history.record_game(moves, outcome, GameMode.TWO_PLAYER)
    history.reset()
    assert len(history) == 0
    assert history.stats.total_games == 0
    assert store.load(STATS_KEY) is None
    assert store.load(HISTORY_KEY) is None


def test_malformed_data_falls_back_to_defaults():
    store = MemoryStore({
        STATS_KEY: {"total_games": "lots", "two_player": []},
        HISTORY_KEY: [{"id": "abc", "moves": "nope"}],
    })
    history = MatchHistory(store)
    assert history.stats.total_games == 0
    assert history.records == ()


def test_wrong_top_level_types_fall_back_to_defaults():
    history = MatchHistory(MemoryStore({STATS_KEY: "zero", HISTORY_KEY: {"not": "a list"}}))
    assert history.stats.total_games == 0
    assert len(history) == 0


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    (tmp_path / "stats.json").write_text("{{{", encoding="utf-8")
    (tmp_path / "history.json").write_text("[1, 2", encoding="utf-8")
    history = MatchHistory(JsonFileStore(tmp_path))
    assert history.stats.total_games == 0
    assert len(history) == 0
