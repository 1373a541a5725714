"""FastAPI-powered web UI for playing lookup-table Tic-Tac-Toe in the browser."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Literal, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from . import config
from .game import GameEngine
from .lookup import LookupProvider
from .scheduler import TurnScheduler


@dataclass
class GameSession:
    """Container for one browser's game engine."""

    engine: GameEngine
    touched_at: float = field(default_factory=lambda: time.time())


SESSIONS: Dict[str, GameSession] = {}
SESSION_TTL_SECONDS = config.SESSION_TTL_SECONDS
provider = LookupProvider(config.LOOKUP_DIR)
scheduler = TurnScheduler(delay=config.AI_DELAY_MS / 1000.0)

logger = logging.getLogger("tablexo.ui")


async def _load_lookup_tables() -> None:
    if await provider.load():
        # Games where the AI moves first may be waiting on the tables.
        for game_id, session in list(SESSIONS.items()):
            scheduler.schedule(game_id, session.engine)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app.state.lookup_task = asyncio.create_task(_load_lookup_tables())
    try:
        yield
    finally:
        scheduler.cancel_all()
        app.state.lookup_task.cancel()


app = FastAPI(
    title="TableXO",
    description="Tic-tac-toe against a precomputed best-move table",
    lifespan=lifespan,
)


class StartRequest(BaseModel):
    """Request payload for starting (or restarting) a game."""

    model_config = ConfigDict(populate_by_name=True)

    ai_player: Literal["X", "O"] = Field(
        alias="aiPlayer", description="Symbol played by the lookup table"
    )
    first_turn: Literal["X", "O"] = Field(default="X", alias="firstTurn")


class MoveRequest(BaseModel):
    """Request payload for submitting a human move."""

    index: int = Field(ge=0, le=8, description="Cell index, row-major")


def _cleanup_sessions() -> None:
    """Drop games nobody has touched within the TTL, with their pending AI moves."""

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if now - session.touched_at >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        scheduler.cancel(game_id)
        SESSIONS.pop(game_id, None)
    if expired:
        logger.info("Evicted %d idle games", len(expired))


def _create_session() -> Tuple[str, GameSession]:
    _cleanup_sessions()
    session = GameSession(engine=GameEngine(provider))
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s", session_id)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.touched_at = time.time()
    return session


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    engine = session.engine
    move_log: List[Dict[str, object]] = [
        {"player": move.player, "index": move.index} for move in engine.history
    ]
    state: Dict[str, object] = {
        "id": game_id,
        "phase": engine.phase,
        "board": [c if c in ("X", "O") else "" for c in engine.board],
        "encoding": engine.encoded_board(),
        "currentPlayer": engine.current_player,
        "aiPlayer": engine.ai_player,
        "humanPlayer": engine.human_player,
        "winner": engine.winner,
        "drawn": engine.drawn,
        "result": engine.result,
        "moveLog": move_log,
        "lastMove": move_log[-1] if move_log else None,
        "aiPending": scheduler.is_pending(game_id),
        "lookupReady": provider.ready,
        "lookupFailed": provider.failed,
    }
    return state


def _apply_player_move(game_id: str, session: GameSession, index: int) -> None:
    engine = session.engine
    reason = engine.check_human_move(index)
    if reason is not None:
        raise HTTPException(status_code=400, detail=reason)
    engine.apply_human_move(index)
    scheduler.schedule(game_id, engine)


@app.post("/api/game")
async def create_game() -> Dict[str, object]:
    game_id, session = _create_session()
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
async def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/start")
async def start_game(game_id: str, request: StartRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    scheduler.cancel(game_id)
    session.engine.start_game(request.ai_player, request.first_turn)
    logger.info(
        "Game %s started: AI plays %s, %s moves first",
        game_id,
        request.ai_player,
        request.first_turn,
    )
    scheduler.schedule(game_id, session.engine)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
async def make_move(game_id: str, request: MoveRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.index)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
async def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    scheduler.cancel(game_id)
    session.engine.reset()
    return _serialize_session(game_id, session)


@app.get("/api/lookup")
async def lookup_status() -> Dict[str, object]:
    return {
        "ready": provider.ready,
        "failed": provider.failed,
        "entries": provider.sizes(),
    }


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic Tac Toe AI</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        flex-direction: column;
        justify-content: center;
        align-items: center;
        text-align: center;
        background: #f2f5ff;
        color: #13203a;
      }
      button {
        font: inherit;
        cursor: pointer;
      }
      .choices button {
        margin: 0 0.4rem;
        padding: 0.5rem 1rem;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 100px);
        gap: 5px;
        margin-top: 20px;
      }
      .cell {
        height: 100px;
        font-size: 32px;
      }
      .cell.last-move {
        outline: 3px solid #5b6cff;
      }
      .board.thinking {
        opacity: 0.7;
      }
      [hidden] {
        display: none !important;
      }
    </style>
  </head>
  <body>
    <h1>Tic Tac Toe AI</h1>
    <p id=\"status\"></p>

    <div id=\"choices\" class=\"choices\">
      <p>Who should go first?</p>
      <button type=\"button\" data-ai=\"O\">Player First (X)</button>
      <button type=\"button\" data-ai=\"X\">AI First (X)</button>
    </div>

    <div id=\"board\" class=\"board\" hidden></div>

    <div id=\"result\" hidden>
      <h2 id=\"result-text\"></h2>
      <button type=\"button\" id=\"restart\">Play Again</button>
    </div>

    <script>
      const boardEl = document.getElementById('board');
      const choicesEl = document.getElementById('choices');
      const resultEl = document.getElementById('result');
      const resultText = document.getElementById('result-text');
      const statusEl = document.getElementById('status');
      let gameId = null;
      let gameState = null;
      let pollTimer = null;

      async function api(path, body) {
        const response = await fetch(path, {
          method: body === undefined ? 'GET' : 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body),
        });
        const payload = await response.json();
        if (!response.ok) {
          throw new Error(payload.detail || 'Request failed');
        }
        return payload;
      }

      function render() {
        if (!gameState) return;
        const selecting = gameState.phase === 'selecting';
        choicesEl.hidden = !selecting;
        boardEl.hidden = selecting;
        boardEl.classList.toggle('thinking', gameState.aiPending);
        boardEl.innerHTML = '';
        gameState.board.forEach((value, index) => {
          const cell = document.createElement('button');
          cell.type = 'button';
          cell.classList.add('cell');
          cell.textContent = value || '-';
          cell.setAttribute('aria-label', value ? `${value} placed` : 'Empty cell');
          if (gameState.lastMove && gameState.lastMove.index === index) {
            cell.classList.add('last-move');
          }
          cell.addEventListener('click', () => play(index));
          boardEl.appendChild(cell);
        });
        if (gameState.result) {
          resultEl.hidden = false;
          resultText.textContent =
            gameState.drawn ? "It's a draw!" : `${gameState.winner} wins!`;
        } else {
          resultEl.hidden = true;
        }
        if (!selecting && !gameState.result && gameState.lookupFailed) {
          statusEl.textContent = 'The AI is unavailable right now.';
        } else if (!selecting && !gameState.result && !gameState.lookupReady) {
          statusEl.textContent = 'Loading the AI...';
        } else {
          statusEl.textContent = '';
        }
      }

      function setState(data) {
        gameState = data;
        gameId = data.id;
        render();
        const waiting =
          gameState.phase === 'in_progress' &&
          gameState.currentPlayer === gameState.aiPlayer;
        const loading = !gameState.lookupReady && !gameState.lookupFailed;
        if (waiting && (gameState.aiPending || loading)) {
          ensurePolling();
        } else {
          stopPolling();
        }
      }

      function ensurePolling() {
        if (pollTimer) return;
        pollTimer = setInterval(async () => {
          try {
            setState(await api(`/api/game/${gameId}`));
          } catch (error) {
            statusEl.textContent = error.message;
          }
        }, 200);
      }

      function stopPolling() {
        if (pollTimer) {
          clearInterval(pollTimer);
          pollTimer = null;
        }
      }

      async function play(index) {
        try {
          setState(await api(`/api/game/${gameId}/move`, { index }));
        } catch (error) {
          statusEl.textContent = error.message;
        }
      }

      choicesEl.querySelectorAll('button').forEach((button) => {
        button.addEventListener('click', async () => {
          setState(
            await api(`/api/game/${gameId}/start`, {
              aiPlayer: button.dataset.ai,
              firstTurn: 'X',
            })
          );
        });
      });

      document.getElementById('restart').addEventListener('click', async () => {
        stopPolling();
        setState(await api(`/api/game/${gameId}/reset`, {}));
      });

      api('/api/game', {}).then(setState);
    </script>
  </body>
</html>
"""
