"""Shared player state and resume history."""

from uniplay.state.actions import Action, ActionType
from uniplay.state.binding import StoreBinding, bind_store
from uniplay.state.reducer import PlayerState, reduce
from uniplay.state.storage import (
    JsonFileStorage,
    MemoryStorage,
    PersistedState,
    StateStorage,
)
from uniplay.state.store import PlayerStateStore

__all__ = [
    "Action",
    "ActionType",
    "JsonFileStorage",
    "MemoryStorage",
    "PersistedState",
    "PlayerState",
    "PlayerStateStore",
    "StateStorage",
    "StoreBinding",
    "bind_store",
    "reduce",
]
