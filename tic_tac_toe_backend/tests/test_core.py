import pytest

from tictactoe.core import (
    WINNING_LINES,
    GameStatus,
    IllegalMove,
    Symbol,
    apply_move,
    empty_indices,
    evaluate,
    new_board,
    serialize_board,
    to_board,
)

X, O = "X", "O"


def test_empty_board_is_ongoing():
    outcome = evaluate(new_board())
    assert outcome.status is GameStatus.PLAYING
    assert outcome.winner is None
    assert outcome.line is None
    assert not outcome.is_terminal


def test_full_board_without_line_is_draw():
    outcome = evaluate(to_board([X, O, X, O, X, O, O, X, O]))
    assert outcome.status is GameStatus.DRAW
    assert outcome.winner is None
    assert outcome.line is None


@pytest.mark.parametrize("line", WINNING_LINES)
def test_each_line_is_detected(line):
    cells = [None] * 9
    for i in line:
        cells[i] = O
    outcome = evaluate(to_board(cells))
    assert outcome.status is GameStatus.WON
    assert outcome.winner is Symbol.O
    assert outcome.line == line


def test_row_reported_before_column():
    # X fills the top row and the left column with one move at 0.
    board = to_board([X, X, X, X, O, O, X, O, O])
    assert evaluate(board).line == (0, 1, 2)


def test_column_reported_before_diagonal():
    board = to_board([X, O, O, X, X, O, X, O, X])
    assert evaluate(board).line == (0, 3, 6)


def test_win_on_full_board_beats_draw():
    board = to_board([X, O, X, O, X, O, O, X, X])
    outcome = evaluate(board)
    assert outcome.status is GameStatus.WON
    assert outcome.line == (0, 4, 8)


def test_apply_move_returns_new_board_and_keeps_input():
    board = to_board([X, None, None, None, O, None, None, None, None])
    before = list(board)
    after = apply_move(board, 8, Symbol.X)
    assert list(board) == before
    assert after[8] is Symbol.X
    assert [i for i in range(9) if after[i] != board[i]] == [8]


@pytest.mark.parametrize("index", [-1, 9, 42])
def test_apply_move_rejects_out_of_range(index):
    with pytest.raises(IllegalMove):
        apply_move(new_board(), index, Symbol.X)


def test_apply_move_rejects_non_int_index():
    with pytest.raises(IllegalMove):
        apply_move(new_board(), "4", Symbol.X)
    with pytest.raises(IllegalMove):
        apply_move(new_board(), True, Symbol.X)


def test_apply_move_rejects_occupied_cell():
    board = apply_move(new_board(), 4, Symbol.X)
    with pytest.raises(IllegalMove) as exc:
        apply_move(board, 4, Symbol.O)
    assert exc.value.index == 4
    assert "taken" in exc.value.reason


def test_apply_move_rejects_finished_game():
    board = to_board([X, X, X, O, O, None, None, None, None])
    with pytest.raises(IllegalMove):
        apply_move(board, 5, Symbol.O)


def test_illegal_move_is_a_value_error():
    assert issubclass(IllegalMove, ValueError)


def test_board_helpers():
    board = to_board([X, None, O, None, None, None, None, None, None])
    assert empty_indices(board) == [1, 3, 4, 5, 6, 7, 8]
    assert serialize_board(board) == [X, None, O, None, None, None, None, None, None]
    assert Symbol.X.opponent is Symbol.O
    assert Symbol.O.opponent is Symbol.X
    with pytest.raises(ValueError):
        to_board([X, O])
