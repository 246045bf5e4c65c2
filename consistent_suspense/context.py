# consistent_suspense/context.py
import html
from dataclasses import dataclass, replace
from typing import Optional

from .config import get_config
from .store import SuspenseStore


@dataclass(frozen=True)
class SuspenseContext:
    """
    What a render function needs to ask the store for ids.
    Passed down the render call tree explicitly, one per deferred subtree.
    """
    store: SuspenseStore
    parent_id: str = ""
    context_id: str = ""
    suspense_id: str = ""

    @classmethod
    def root(cls, store: Optional[SuspenseStore] = None, context_id: str = "") -> "SuspenseContext":
        """
        Top-level context. With the default empty `context_id`, element ids
        rendered outside any boundary look like "-a", "-b" and top-level
        boundaries are "a", "b". Pass e.g. context_id="root" to get "root-a"
        and "root:a" instead.
        """
        return cls(
            store=store if store is not None else SuspenseStore.create(),
            parent_id=context_id,
            context_id=context_id,
        )


def use_id(context: SuspenseContext, cache_key: str) -> str:
    """Consistent element id for the call site identified by `cache_key`."""
    return context.store.create_id(context.context_id, cache_key)


class Suspense:
    """
    Server side half of a suspense boundary.

    Allocates the boundary id for the deferred subtree and renders the fallback
    with a marker script, so the stream can tell which boundary a slot belongs to:

        <script data-suspense-id="a-a" data-count="1"></script>Loading...
    """

    def __init__(self, context: SuspenseContext, cache_key: str, fallback: str = "", children_count: int = 1):
        self.context = context
        self.fallback = fallback
        self.children_count = children_count
        # ids must be taken in this order so re-runs line up
        self.suspense_id = use_id(context, f"{cache_key}:id")
        self.context_id = context.store.create_suspense_id(context.parent_id, f"{cache_key}:context")

    def child_context(self) -> SuspenseContext:
        return replace(
            self.context,
            parent_id=self.context_id,
            context_id=self.context_id,
            suspense_id=self.suspense_id,
        )

    def render_fallback(self) -> str:
        if not self.context.store.has_lifebuoy:
            return self.fallback

        config = get_config()
        suspense_attribute = config.get_nested("stream.suspense_attribute")
        count_attribute = config.get_nested("stream.count_attribute")
        marker = (
            f'<script {suspense_attribute}="{html.escape(self.suspense_id, quote=True)}"'
            f' {count_attribute}="{int(self.children_count)}"></script>'
        )
        return f"{marker}{self.fallback}"
