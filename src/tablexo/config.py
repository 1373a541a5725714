"""Runtime settings read from the environment and the project's ``.env`` file."""

import os
from pathlib import Path

from dotenv import load_dotenv

# src/tablexo/config.py -> project root
ROOT_DIR = Path(__file__).resolve().parents[2]

load_dotenv(dotenv_path=ROOT_DIR / ".env")

# ================== SERVER ==================
HOST = os.environ.get("TABLEXO_HOST", "0.0.0.0")
PORT = int(os.environ.get("TABLEXO_PORT", "8000"))

# ================== GAME ==================
# Directory holding tictactoe_lookup_X.json and tictactoe_lookup_O.json
LOOKUP_DIR = Path(os.environ.get("TABLEXO_LOOKUP_DIR", "lookup"))

# Pause before the AI answers, in milliseconds
AI_DELAY_MS = int(os.environ.get("TABLEXO_AI_DELAY_MS", "150"))

# Idle games older than this are dropped when new ones are created
SESSION_TTL_SECONDS = int(os.environ.get("TABLEXO_SESSION_TTL", str(60 * 30)))

# ================== LOGGING ==================
LOG_LEVEL = (os.environ.get("LOG_LEVEL", "INFO") or "INFO").upper()
