"""TableXO package exposing game logic, lookup tables, and the web application."""

from .game import GameEngine, evaluate
from .lookup import LookupProvider
from .scheduler import TurnScheduler
from .ui import app

__all__ = ["GameEngine", "LookupProvider", "TurnScheduler", "app", "evaluate"]
