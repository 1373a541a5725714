"""Read-only best-move tables keyed by canonical board encoding."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Dict, Mapping, Optional, Union

from pydantic import Field, StringConstraints, TypeAdapter, ValidationError

from .game import PLAYERS, Player

BoardKey = Annotated[str, StringConstraints(pattern=r"^[XO-]{9}$")]
CellIndex = Annotated[int, Field(ge=0, le=8, strict=True)]

TABLE_ADAPTER: TypeAdapter[Dict[str, int]] = TypeAdapter(
    Dict[BoardKey, CellIndex]
)
TABLE_FILENAME = "tictactoe_lookup_{player}.json"

logger = logging.getLogger("tablexo.lookup")


class TableLoadError(Exception):
    """Raised internally when a table cannot be read or validated."""


def _freeze(raw: object) -> Mapping[str, int]:
    return MappingProxyType(TABLE_ADAPTER.validate_python(raw))


def _read_table(path: Path) -> Mapping[str, int]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise TableLoadError(f"{path}: {exc}") from exc
    try:
        return _freeze(raw)
    except ValidationError as exc:
        raise TableLoadError(f"{path}: {exc.error_count()} invalid entries") from exc


class LookupProvider:
    """Loads one table per AI symbol and reports not-ready until both are in.

    A provider whose load failed stays not-ready for good; callers see every
    board as having no recorded move.
    """

    def __init__(self, directory: Union[str, Path, None] = None) -> None:
        self.directory = Path(directory) if directory is not None else None
        self._tables: Dict[Player, Mapping[str, int]] = {}
        self.failed = False
        self._loading: Optional[asyncio.Task] = None

    @classmethod
    def from_tables(
        cls, tables: Mapping[Player, Mapping[str, int]]
    ) -> "LookupProvider":
        provider = cls()
        for player in PLAYERS:
            provider._tables[player] = _freeze(dict(tables[player]))
        return provider

    @property
    def ready(self) -> bool:
        return all(player in self._tables for player in PLAYERS)

    def path_for(self, player: Player) -> Path:
        if self.directory is None:
            raise ValueError("Provider has no lookup directory")
        return self.directory / TABLE_FILENAME.format(player=player)

    async def load(self) -> bool:
        """Load both tables once; later calls wait on or reuse the first load."""
        if self.ready or self.failed:
            return self.ready
        if self._loading is None:
            self._loading = asyncio.ensure_future(self._load())
        await self._loading
        return self.ready

    async def _load(self) -> None:
        try:
            paths = [self.path_for(player) for player in PLAYERS]
            tables = await asyncio.gather(
                *(asyncio.to_thread(_read_table, path) for path in paths)
            )
        except (TableLoadError, ValueError) as exc:
            self.failed = True
            logger.error("Lookup tables unavailable, AI turns will stall: %s", exc)
            return
        for player, table in zip(PLAYERS, tables):
            self._tables[player] = table
        logger.info("Loaded lookup tables: %s", self.sizes())

    def table_for(self, player: Player) -> Optional[Mapping[str, int]]:
        if not self.ready:
            return None
        return self._tables.get(player)

    def best_move(self, player: Player, encoding: str) -> Optional[int]:
        table = self.table_for(player)
        if table is None:
            return None
        return table.get(encoding)

    def sizes(self) -> Dict[str, int]:
        return {player: len(self._tables.get(player, ())) for player in PLAYERS}
