# consistent_suspense/store.py
"""
Consistent Suspense Store - deterministic ids for deferred subtrees

A server render may run the same build function more than once (purity checks,
a suspended subtree re-running its first pass, ...). Any id generated inside
such a subtree has to come out identical every time, otherwise the markup sent
in the shell and the markup sent later in a completion chunk stop agreeing.

The store hands out three kinds of ids:

- **Suspense (boundary) ids**: one per deferred subtree, nested with ':'
  e.g. "a", "a:a", "a:b", "a:b:a"
- **Namespace ids**: isolated id sequences inside a boundary, joined with '|'
  e.g. "a|a", "a|b"
- **Element ids**: leaf ids inside a boundary or namespace, joined with '-'
  e.g. "a:b-a", "a|a-c"

Every create operation is memoized on a caller supplied `cache_key` that stays
the same across repeated invocations of the same call site, so calling it twice
returns the same id. Resets rewind counters without touching the memo, so new
call sites after a reset reproduce the sequence a fresh scope would produce.

```python
store = SuspenseStore()
boundary = store.create_suspense_id("root", "k1")   # "root:a"
store.create_id(boundary, "k2")                     # "root:a-a"
store.create_id(boundary, "k2")                     # "root:a-a" (memoized)
```
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Set

from .config import get_config
from .letters import next_letter

SUSPENSE_SEPARATOR = ":"
NAMESPACE_SEPARATOR = "|"
ELEMENT_SEPARATOR = "-"


@dataclass
class Scope:
    """Counters for a single boundary or namespace."""
    id: str
    child_letter: str = ""
    namespace_letter: str = ""
    element_letter: str = ""
    start_letter: str = ""
    namespaces: Dict[str, "Scope"] = field(default_factory=dict)
    # ids this scope handed out to its own children, kept across resets
    children: Set[str] = field(default_factory=set)

    def reset(self) -> None:
        self.child_letter = self.start_letter
        self.namespace_letter = self.start_letter
        self.element_letter = self.start_letter
        self.namespaces.clear()


def get_suspense_id(scope_id: str) -> str:
    """Returns the boundary that owns `scope_id` (the part before the first '|')."""
    return scope_id.split(NAMESPACE_SEPARATOR, 1)[0]


class SuspenseStore:
    def __init__(self, has_lifebuoy: bool = True, debug: Optional[bool] = None):
        self.has_lifebuoy = has_lifebuoy
        self.debug = bool(get_config().get("debug", False)) if debug is None else debug
        # boundary scopes by id, the root boundary lives under ""
        self._scopes: Dict[str, Scope] = {}
        # cache_key -> id, one table per kind of id
        self._cache: Dict[str, Dict[str, str]] = {
            "suspense": {},
            "namespace": {},
            "element": {},
        }

    @classmethod
    def create(cls, **kwargs) -> "SuspenseStore":
        return cls(**kwargs)

    # ----- public API -----
    def create_suspense_id(self, parent_id: str, cache_key: str) -> str:
        """Creates (or returns the memoized) id of a boundary nested in `parent_id`."""
        return self._with_cache("suspense", cache_key, lambda: self._allocate_suspense(parent_id))

    def create_namespace_id(self, parent_id: str, cache_key: str) -> str:
        """Creates (or returns the memoized) id of a namespace nested in `parent_id`."""
        return self._with_cache("namespace", cache_key, lambda: self._allocate_namespace(parent_id))

    def create_id(self, scope_id: str, cache_key: str, is_namespace: bool = False) -> str:
        """Creates (or returns the memoized) element id inside a boundary or namespace."""
        return self._with_cache("element", cache_key, lambda: self._allocate_element(scope_id, is_namespace))

    def reset_suspense(self, suspense_id: str) -> None:
        scope = self._scopes.get(suspense_id)
        if scope is None:
            return
        scope.reset()
        self._log(f"reset suspense '{suspense_id}'")

    def reset_namespace(self, namespace_id: str) -> None:
        boundary = self._scopes.get(get_suspense_id(namespace_id))
        if boundary is None:
            return
        namespace = boundary.namespaces.get(namespace_id)
        if namespace is None:
            return
        namespace.element_letter = namespace.start_letter
        self._log(f"reset namespace '{namespace_id}'")

    def get_scope(self, scope_id: str, is_namespace: bool = False) -> Optional[Scope]:
        if not is_namespace:
            return self._scopes.get(scope_id)
        boundary = self._scopes.get(get_suspense_id(scope_id))
        if boundary is None:
            return None
        return boundary.namespaces.get(scope_id)

    def clear(self) -> None:
        """Drops every scope and memoized id (a brand new render attempt)."""
        self._scopes.clear()
        for table in self._cache.values():
            table.clear()

    # ----- internal helpers -----
    def _with_cache(self, kind: str, cache_key: str, factory: Callable[[], str]) -> str:
        if not isinstance(cache_key, str):
            raise TypeError(f"cache_key must be a string, got {type(cache_key).__name__}")
        if not cache_key:
            raise ValueError("cache_key must not be empty")

        table = self._cache[kind]
        if cache_key in table:
            return table[cache_key]

        value = factory()
        table[cache_key] = value
        return value

    def _ensure_suspense(self, suspense_id: str) -> Scope:
        scope = self._scopes.get(suspense_id)
        if scope is None:
            scope = Scope(id=suspense_id)
            self._scopes[suspense_id] = scope
        return scope

    def _ensure_namespace(self, boundary: Scope, namespace_id: str) -> Scope:
        scope = boundary.namespaces.get(namespace_id)
        if scope is None:
            scope = Scope(id=namespace_id)
            boundary.namespaces[namespace_id] = scope
        return scope

    @staticmethod
    def _next_child_letter(current: str, join: Callable[[str], str], taken: Callable[[str], bool], owned: Set[str]) -> str:
        # An id the parent handed out before is reused (a re-run after a
        # reset lands on the same children again). Anything else sitting at
        # a candidate, e.g. a scope created implicitly by create_id, is skipped.
        letter = next_letter(current)
        while taken(join(letter)) and join(letter) not in owned:
            letter = next_letter(letter)
        return letter

    def _allocate_suspense(self, parent_id: str) -> str:
        parent = self._ensure_suspense(parent_id)

        def join(letter: str) -> str:
            return f"{parent_id}{SUSPENSE_SEPARATOR}{letter}" if parent_id else letter

        parent.child_letter = self._next_child_letter(
            parent.child_letter, join, lambda candidate: candidate in self._scopes, parent.children
        )
        suspense_id = join(parent.child_letter)
        parent.children.add(suspense_id)
        self._scopes[suspense_id] = Scope(id=suspense_id)
        self._log(f"new suspense '{suspense_id}'")
        return suspense_id

    def _allocate_namespace(self, parent_id: str) -> str:
        suspense_id = get_suspense_id(parent_id)
        boundary = self._ensure_suspense(suspense_id)
        parent = boundary if parent_id == suspense_id else self._ensure_namespace(boundary, parent_id)

        def join(letter: str) -> str:
            return f"{parent_id}{NAMESPACE_SEPARATOR}{letter}"

        parent.namespace_letter = self._next_child_letter(
            parent.namespace_letter, join, lambda candidate: candidate in boundary.namespaces, parent.children
        )
        namespace_id = join(parent.namespace_letter)
        parent.children.add(namespace_id)
        boundary.namespaces[namespace_id] = Scope(id=namespace_id)
        self._log(f"new namespace '{namespace_id}'")
        return namespace_id

    def _allocate_element(self, scope_id: str, is_namespace: bool) -> str:
        if is_namespace:
            boundary = self._ensure_suspense(get_suspense_id(scope_id))
            scope = self._ensure_namespace(boundary, scope_id)
        else:
            scope = self._ensure_suspense(scope_id)

        scope.element_letter = next_letter(scope.element_letter)
        return f"{scope_id}{ELEMENT_SEPARATOR}{scope.element_letter}"

    def _log(self, message: str) -> None:
        if self.debug:
            print(f"[SuspenseStore] {message}")
