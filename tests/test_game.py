"""Unit tests for the lookup-driven game engine."""

import logging

import pytest

from tablexo.game import DRAW, GameEngine, evaluate
from tablexo.lookup import LookupProvider


TABLES = {
    "X": {"---------": 4},
    "O": {"----X----": 0, "X--------": 3, "XX-O-----": 4},
}


def make_engine(tables=TABLES):
    return GameEngine(LookupProvider.from_tables(tables))


@pytest.mark.parametrize(
    "board, expected",
    [
        ("XXXOO----", "X"),
        ("OOOXX-X--", "O"),
        ("X--XO-XO-", "X"),
        ("O-XOX-X--", "X"),
        ("O--XO-X-O", "O"),
        ("XOXXOOOXX", DRAW),
        ("XOXOXOXOX", "X"),  # full, but the 0-4-8 diagonal is X
        ("---------", None),
        ("XO-------", None),
        ("XOXXOOOX-", None),
    ],
)
def test_evaluate(board, expected):
    assert evaluate(list(board)) == expected


def test_new_engine_waits_for_selection():
    engine = make_engine()
    assert engine.phase == "selecting"
    assert engine.ai_player is None
    assert engine.current_player == "X"
    assert engine.encoded_board() == "-" * 9
    assert engine.apply_human_move(0) is False


def test_start_game_sets_players():
    engine = make_engine()
    engine.start_game("O", "X")
    assert engine.phase == "in_progress"
    assert engine.ai_player == "O"
    assert engine.human_player == "X"
    assert engine.current_player == "X"
    assert not engine.is_ai_turn


def test_start_game_rejects_unknown_symbol():
    engine = make_engine()
    with pytest.raises(ValueError):
        engine.start_game("Z")


def test_human_then_ai_move():
    engine = make_engine()
    engine.start_game("O", "X")
    assert engine.apply_human_move(4)
    assert engine.current_player == "O"
    assert engine.is_ai_turn

    assert engine.apply_ai_move() == 0
    assert engine.encoded_board() == "O---X----"
    assert engine.current_player == "X"


def test_ai_moves_first():
    engine = make_engine()
    engine.start_game("X", "X")
    assert engine.apply_ai_move() == 4
    assert engine.encoded_board() == "----X----"
    assert engine.current_player == "O"


def test_turn_alternates_until_win():
    engine = make_engine()
    engine.start_game("O", "X")
    seen = [engine.current_player]
    for index in (0, None, 1, None, 2):
        if index is None:
            assert engine.apply_ai_move() is not None
        else:
            assert engine.apply_human_move(index)
        seen.append(engine.current_player)

    assert engine.encoded_board() == "XXXOO----"
    assert engine.winner == "X"
    assert engine.phase == "terminal"
    # The turn stops flipping once the game is decided.
    assert seen == ["X", "O", "X", "O", "X", "X"]
    assert [m.player for m in engine.history] == ["X", "O", "X", "O", "X"]


def test_no_moves_after_game_over():
    engine = make_engine()
    engine.start_game("O", "X")
    for index in (0, None, 1, None, 2):
        if index is None:
            engine.apply_ai_move()
        else:
            engine.apply_human_move(index)

    board = engine.encoded_board()
    assert engine.check_human_move(8) == "Game already finished"
    assert engine.apply_human_move(8) is False
    assert engine.apply_ai_move() is None
    assert engine.encoded_board() == board


def test_human_move_on_occupied_cell_is_noop():
    engine = make_engine()
    engine.start_game("O", "X")
    engine.apply_human_move(4)
    engine.apply_ai_move()  # O takes 0

    assert engine.check_human_move(0) == "Cell already occupied"
    assert engine.apply_human_move(0) is False
    assert engine.encoded_board() == "O---X----"
    assert engine.current_player == "X"


def test_human_cannot_move_on_ai_turn():
    engine = make_engine()
    engine.start_game("O", "X")
    engine.apply_human_move(4)

    assert engine.check_human_move(5) == "It is not your turn"
    assert engine.apply_human_move(5) is False
    assert engine.encoded_board() == "----X----"
    assert engine.current_player == "O"


@pytest.mark.parametrize("index", [-1, 9, 42])
def test_out_of_range_index_rejected(index):
    engine = make_engine()
    engine.start_game("O", "X")
    assert engine.check_human_move(index) == "Cell index out of range"
    assert engine.apply_human_move(index) is False
    assert engine.encoded_board() == "-" * 9
    assert engine.history == []


def test_missing_entry_stalls_ai(caplog):
    engine = make_engine()
    engine.start_game("O", "X")
    engine.apply_human_move(8)

    with caplog.at_level(logging.WARNING, logger="tablexo.game"):
        assert engine.apply_ai_move() is None
    assert engine.encoded_board() == "--------X"
    assert engine.current_player == "O"
    assert "No lookup entry for --------X" in caplog.text


def test_entry_pointing_at_occupied_cell_is_ignored(caplog):
    engine = make_engine({"X": {}, "O": {"X--------": 0}})
    engine.start_game("O", "X")
    engine.apply_human_move(0)

    with caplog.at_level(logging.ERROR, logger="tablexo.game"):
        assert engine.apply_ai_move() is None
    assert engine.encoded_board() == "X--------"
    assert engine.current_player == "O"
    assert "Inconsistent O table" in caplog.text


def test_ai_idles_until_tables_load():
    engine = GameEngine(LookupProvider("does-not-exist"))
    engine.start_game("X", "X")
    assert engine.apply_ai_move() is None
    assert engine.encoded_board() == "-" * 9
    assert engine.current_player == "X"


def test_ai_move_outside_ai_turn_is_noop():
    engine = make_engine()
    engine.start_game("O", "X")
    assert engine.apply_ai_move() is None
    assert engine.encoded_board() == "-" * 9


def test_reset_is_idempotent():
    engine = make_engine()
    engine.start_game("O", "O")
    engine.reset()
    once = (engine.phase, engine.board, engine.current_player, engine.result)
    engine.reset()
    twice = (engine.phase, engine.board, engine.current_player, engine.result)

    assert once == twice == ("selecting", ["-"] * 9, "X", None)
    assert engine.ai_player is None
    assert engine.history == []


def test_restart_bumps_generation():
    engine = make_engine()
    start = engine.generation
    engine.start_game("O")
    engine.start_game("X")
    engine.reset()
    assert engine.generation == start + 3
