"""Delayed AI replies on the event loop, discarded when their game has moved on."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Hashable

from .game import GameEngine

AI_MOVE_DELAY = 0.15  # seconds between the human's move and the AI reply

logger = logging.getLogger("tablexo.scheduler")


class TurnScheduler:
    """Runs ``GameEngine.apply_ai_move`` a short delay after the AI's turn begins.

    Every timer captures the engine generation and board encoding; if either
    differs when it fires (restart, reset, another move) the reply is dropped.
    One pending timer per key at most.
    """

    def __init__(self, delay: float = AI_MOVE_DELAY) -> None:
        self.delay = delay
        self._pending: Dict[Hashable, asyncio.TimerHandle] = {}

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def schedule(self, key: Hashable, engine: GameEngine) -> bool:
        if key in self._pending or not engine.is_ai_turn:
            return False
        if not engine.lookup.ready:
            logger.debug("Lookup tables not ready; AI move for %s deferred", key)
            return False
        loop = asyncio.get_running_loop()
        self._pending[key] = loop.call_later(
            max(0.0, self.delay),
            self._fire,
            key,
            engine,
            engine.generation,
            engine.encoded_board(),
        )
        return True

    def cancel(self, key: Hashable) -> None:
        handle = self._pending.pop(key, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for key in list(self._pending):
            self.cancel(key)

    def _fire(
        self, key: Hashable, engine: GameEngine, generation: int, snapshot: str
    ) -> None:
        self._pending.pop(key, None)
        if engine.generation != generation or engine.encoded_board() != snapshot:
            logger.debug("Dropping stale AI move for %s", key)
            return
        index = engine.apply_ai_move()
        if index is not None:
            logger.debug("AI %s played %d in %s", engine.ai_player, index, key)
