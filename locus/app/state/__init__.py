"""Display state management."""

from .app_state import AppState
from .store import Store

__all__ = ["AppState", "Store"]
