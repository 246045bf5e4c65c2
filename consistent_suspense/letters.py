# consistent_suspense/letters.py
import string
from typing import Iterator, Optional

# a..z then A..Z
ALPHABET = string.ascii_lowercase + string.ascii_uppercase


def next_letter(current: Optional[str] = None) -> str:
    """
    Returns the value that follows `current` in the letter sequence
    a, b, ..., z, A, ..., Z, aa, ab, ...

    An empty (or missing) value is the position just before "a".
    """
    if not current:
        return "a"

    prefix, last = current[:-1], current[-1]

    if last == "z":
        return prefix + "A"
    if last == "Z":
        if not prefix:
            return "aa"
        return next_letter(prefix) + "a"

    return prefix + chr(ord(last) + 1)


def letter_sequence(count: int, start: str = "") -> Iterator[str]:
    """Yields `count` successive letters after `start`."""
    letter = start
    for _ in range(count):
        letter = next_letter(letter)
        yield letter
