"""Core rules and session state for lookup-driven Tic-Tac-Toe."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .lookup import LookupProvider

Player = str  # "X" or "O"
GameResult = Optional[str]  # None, "X", "O" or "Draw"

PLAYERS: Tuple[Player, Player] = ("X", "O")
EMPTY = "-"
DRAW = "Draw"
BOARD_SIZE = 9

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

SELECTING = "selecting"
IN_PROGRESS = "in_progress"
TERMINAL = "terminal"

logger = logging.getLogger("tablexo.game")


def other(player: Player) -> Player:
    return "O" if player == "X" else "X"


def empty_board() -> List[str]:
    return [EMPTY] * BOARD_SIZE


def encode_board(board: Sequence[str]) -> str:
    """Canonical lookup key: the 9 cells joined left-to-right, top-to-bottom."""
    return "".join(board)


def evaluate(board: Sequence[str]) -> GameResult:
    """Return the winner, ``DRAW`` for a full board without a line, else None."""
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return v
    if EMPTY not in board:
        return DRAW
    return None


@dataclass
class Move:
    player: Player
    index: int


@dataclass
class Session:
    # ai_player is None while the selection prompt is shown
    board: List[str] = field(default_factory=empty_board)
    ai_player: Optional[Player] = None
    current_player: Player = "X"
    result: GameResult = None
    generation: int = 0
    history: List[Move] = field(default_factory=list)


class GameEngine:
    """Authoritative board, turn and result state for one player-vs-table game.

    AI decisions come from ``lookup``; a board without a recorded move leaves
    the AI idle for that turn instead of failing.
    """

    def __init__(self, lookup: "LookupProvider") -> None:
        self.lookup = lookup
        self.session = Session()

    # ---- read-only view used by the scheduler & web layer ----

    @property
    def board(self) -> List[str]:
        return list(self.session.board)

    @property
    def current_player(self) -> Player:
        return self.session.current_player

    @property
    def ai_player(self) -> Optional[Player]:
        return self.session.ai_player

    @property
    def human_player(self) -> Optional[Player]:
        if self.session.ai_player is None:
            return None
        return other(self.session.ai_player)

    @property
    def result(self) -> GameResult:
        return self.session.result

    @property
    def winner(self) -> Optional[Player]:
        return self.session.result if self.session.result in PLAYERS else None

    @property
    def drawn(self) -> bool:
        return self.session.result == DRAW

    @property
    def generation(self) -> int:
        return self.session.generation

    @property
    def history(self) -> List[Move]:
        return list(self.session.history)

    @property
    def phase(self) -> str:
        if self.session.ai_player is None:
            return SELECTING
        if self.session.result is not None:
            return TERMINAL
        return IN_PROGRESS

    @property
    def is_ai_turn(self) -> bool:
        return (
            self.phase == IN_PROGRESS
            and self.session.current_player == self.session.ai_player
        )

    def encoded_board(self) -> str:
        return encode_board(self.session.board)

    # ---- actions ----

    def start_game(self, ai_player: Player, first_turn: Player = "X") -> None:
        if ai_player not in PLAYERS or first_turn not in PLAYERS:
            raise ValueError("Players must be 'X' or 'O'")
        self.session = Session(
            ai_player=ai_player,
            current_player=first_turn,
            generation=self.session.generation + 1,
        )
        logger.debug(
            "Started game %d: AI plays %s, %s moves first",
            self.session.generation,
            ai_player,
            first_turn,
        )

    def reset(self) -> None:
        self.session = Session(generation=self.session.generation + 1)

    def check_human_move(self, index: int) -> Optional[str]:
        """Return why a human move at ``index`` is refused, or None if legal."""
        s = self.session
        if s.ai_player is None:
            return "No game in progress"
        if s.result is not None:
            return "Game already finished"
        if not 0 <= index < BOARD_SIZE:
            return "Cell index out of range"
        if s.board[index] != EMPTY:
            return "Cell already occupied"
        if s.current_player != other(s.ai_player):
            return "It is not your turn"
        return None

    def apply_human_move(self, index: int) -> bool:
        if self.check_human_move(index) is not None:
            return False
        self._place(self.session.current_player, index)
        return True

    def apply_ai_move(self) -> Optional[int]:
        """Play the table's move for the current board; None when the AI idles."""
        if not self.is_ai_turn:
            return None
        s = self.session
        key = encode_board(s.board)
        if not self.lookup.ready:
            logger.warning(
                "Lookup tables not loaded; AI %s waits on %s", s.ai_player, key
            )
            return None
        index = self.lookup.best_move(s.ai_player, key)
        if index is None:
            logger.warning("No lookup entry for %s in the %s table", key, s.ai_player)
            return None
        if not 0 <= index < BOARD_SIZE or s.board[index] != EMPTY:
            logger.error(
                "Inconsistent %s table: %s -> %d points at an unavailable cell",
                s.ai_player,
                key,
                index,
            )
            return None
        self._place(s.ai_player, index)
        return index

    # ---- helpers ----

    def _place(self, player: Player, index: int) -> None:
        s = self.session
        s.board[index] = player
        s.history.append(Move(player=player, index=index))
        s.result = evaluate(s.board)
        if s.result is None:
            s.current_player = other(player)
