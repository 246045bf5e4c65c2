# consistent_suspense/stream.py
"""
Stream Suspense - splices caller markup into streamed HTML chunks

Use with a streaming server renderer that sends a "shell" first and later
sends completion chunks that fill in the shell's placeholders.

**What it looks for in every chunk:**
1. **Registrations** (usually in the shell):
   `<template id="B:0"> ... <script data-suspense-id="a:a" data-count="1">`
   links the renderer's slot id ("B:0") to our own suspense id ("a:a").
2. **Reveal calls** (in completion chunks):
   `$RC("B:0","S:0")` - slot B:0 was filled with the content of S:0
   `$RX("B:0","S:0","message")` - slot B:0 failed to render

When a reveal call points at a registered slot, the callback is asked for
markup for that suspense id. The markup goes in front of the reveal calls,
which are moved to a fresh script at the very end of the chunk:

    <stripped chunk><callback markup><script>$RC("B:0","S:0");</script>

so whatever the callback injects runs before the renderer swaps the content in.
Unknown or already resolved slots are ignored and `analyze` returns None, in
which case the caller forwards the chunk untouched.
"""

import json
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

from .config import get_config

AWAITING_SHELL = "AWAITING_SHELL"
STREAMING = "STREAMING"

# one double-quoted JS string literal
_JS_STRING = r'"(?:[^"\\]|\\.)*"'

SuspenseCallback = Callable[[str, Union[int, str, None]], Optional[str]]


def unescape_js_string(value: str) -> str:
    """Decodes the escapes of a double-quoted JS string body; undecodable input comes back as is."""
    try:
        return json.loads(f'"{value}"')
    except ValueError:
        return value


@dataclass
class PendingSlot:
    suspense_id: str
    count: Optional[int] = None


class StreamSuspense:
    def __init__(
        self,
        callback: SuspenseCallback,
        reveal_function: Optional[str] = None,
        reveal_error_function: Optional[str] = None,
        suspense_attribute: Optional[str] = None,
        count_attribute: Optional[str] = None,
        debug: Optional[bool] = None,
    ):
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")

        config = get_config()
        self.callback = callback
        self.reveal_function = reveal_function or config.get_nested("stream.reveal_function")
        self.reveal_error_function = reveal_error_function or config.get_nested("stream.reveal_error_function")
        self.suspense_attribute = suspense_attribute or config.get_nested("stream.suspense_attribute")
        self.count_attribute = count_attribute or config.get_nested("stream.count_attribute")
        self.debug = bool(config.get("debug", False)) if debug is None else debug

        self.state = AWAITING_SHELL
        # slot id -> suspense registered in the shell
        self._suspend_ids: Dict[str, PendingSlot] = {}

        self._compile_patterns()

    @classmethod
    def create(cls, callback: SuspenseCallback, **kwargs) -> "StreamSuspense":
        return cls(callback, **kwargs)

    @property
    def pending(self) -> Dict[str, PendingSlot]:
        """Slots registered but not resolved yet."""
        return dict(self._suspend_ids)

    # ----- public API -----
    def analyze(self, html: Union[str, bytes, None]) -> Optional[str]:
        """
        Registers placeholders found in `html` and, if the chunk reveals one of
        them, returns the rewritten chunk. Returns None when the chunk should
        be forwarded as is.
        """
        if html is None:
            return None
        if isinstance(html, bytes):
            html = html.decode("utf-8", errors="replace")

        self._obtain_suspense(html)

        return self._obtain_complete_suspense(html)

    # ----- registration -----
    def _obtain_suspense(self, html: str) -> None:
        for match in self._template_re.finditer(html):
            slot_id = match.group("slot")
            if slot_id in self._suspend_ids:
                continue

            attrs = match.group("attrs")
            suspense_id = self._suspense_attr_re.search(attrs).group(1)
            count_match = self._count_attr_re.search(attrs)
            count = int(count_match.group(1)) if count_match else None

            self._suspend_ids[slot_id] = PendingSlot(suspense_id=suspense_id, count=count)
            self.state = STREAMING
            self._log(f"registered slot '{slot_id}' -> suspense '{suspense_id}'")

    def _replace_suspend_id(self, from_id: str, to_id: str) -> Optional[str]:
        if not from_id or from_id not in self._suspend_ids:
            return None

        self._suspend_ids[to_id] = self._suspend_ids.pop(from_id)
        return to_id

    # ----- resolution -----
    def _obtain_complete_suspense(self, html: str) -> Optional[str]:
        complete = self._reveal_re.search(html)
        if complete:
            slot_id = self._replace_suspend_id(complete.group("from_id"), complete.group("to_id"))
            if slot_id is not None:
                slot = self._suspend_ids.pop(slot_id)
                self._log(f"slot '{complete.group('from_id')}' revealed as '{slot_id}'")
                return self._flush(html, slot.suspense_id, slot.count)

        failed = self._reveal_error_re.search(html)
        if failed:
            slot = self._suspend_ids.pop(failed.group("from_id"), None)
            if slot is not None:
                self._log(f"slot '{failed.group('from_id')}' failed")
                return self._flush(html, slot.suspense_id, unescape_js_string(failed.group("message") or ""))

        for dropped in (complete, failed):
            if dropped:
                self._log(f"ignored {dropped.group(0)}: slot '{dropped.group('from_id')}' is not pending")
        return None

    def _flush(self, html: str, suspense_id: str, extra: Union[int, str, None]) -> str:
        output = self.callback(suspense_id, extra) or ""
        stripped, calls = self._strip_calls(html)
        return f"{stripped}{output}<script>{';'.join(calls)};</script>"

    def _strip_calls(self, html: str) -> Tuple[str, List[str]]:
        """Removes every reveal call from `html`, returning them in order without duplicates."""
        calls: Dict[str, None] = {}

        def remove(match: "re.Match") -> str:
            for call in self._call_re.finditer(match.group(0)):
                calls.setdefault(call.group(0), None)
            return ""

        return self._strip_re.sub(remove, html), list(calls)

    # ----- patterns -----
    def _compile_patterns(self) -> None:
        reveal = re.escape(self.reveal_function)
        reveal_error = re.escape(self.reveal_error_function)
        attr = re.escape(self.suspense_attribute)

        self._template_re = re.compile(
            r'<template id="(?P<slot>[^"]+)"[^>]*>'
            r'(?:(?!<template\b).)*?'
            rf'<script\b(?P<attrs>[^>]*?\s{attr}="[^"]*"[^>]*)>',
            re.DOTALL,
        )
        self._suspense_attr_re = re.compile(rf'\s{attr}="([^"]*)"')
        self._count_attr_re = re.compile(rf'\s{re.escape(self.count_attribute)}="(\d+)"')

        self._reveal_re = re.compile(
            rf'{reveal}\(\s*"(?P<from_id>[^"]*)"\s*,\s*"(?P<to_id>[^"]*)"\s*\)'
        )
        self._reveal_error_re = re.compile(
            rf'{reveal_error}\(\s*"(?P<from_id>[^"]*)"\s*,\s*"(?P<to_id>[^"]*)"'
            rf'(?:\s*,\s*"(?P<message>(?:[^"\\]|\\.)*)")?'
            rf'(?:\s*,\s*{_JS_STRING})*\s*\)'
        )

        # any reveal call with string literal arguments, e.g. $RC("B:0","S:0")
        call = rf'(?:{reveal}|{reveal_error})\((?:\s*{_JS_STRING}\s*,?)*\s*\)'
        self._call_re = re.compile(call)
        # a script left holding nothing but reveal calls goes away entirely
        self._strip_re = re.compile(rf'<script\b[^>]*>(?:\s*{call}\s*;?)+\s*</script>|{call};?')

    def _log(self, message: str) -> None:
        if self.debug:
            print(f"[StreamSuspense] {message}")
