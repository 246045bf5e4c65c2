# consistent_suspense/__init__.py

"""
Consistent Suspense

Deterministic element ids for deferred (suspended) subtrees of a streaming
server render, and a chunk analyzer that lets the caller inject markup right
before a suspended subtree is revealed.
"""

from .config import Config, get_config
from .letters import ALPHABET, next_letter, letter_sequence
from .store import SuspenseStore, Scope
from .stream import StreamSuspense, PendingSlot, AWAITING_SHELL, STREAMING
from .context import SuspenseContext, Suspense, use_id

__all__ = [
    "Config",
    "get_config",
    "ALPHABET",
    "next_letter",
    "letter_sequence",
    "SuspenseStore",
    "Scope",
    "StreamSuspense",
    "PendingSlot",
    "AWAITING_SHELL",
    "STREAMING",
    "SuspenseContext",
    "Suspense",
    "use_id",
]
