"""
Notes API — Validator
======================

What:  A small error-collecting rule engine.
How:   Checks record at most one message per key; the first failure for a key
       wins and later checks on that key are no-ops. Nothing here raises.

Example:
    v = Validator()
    v.check(title != "", "title", "must be provided")
    v.check(unique(tags), "tags", "must not contain duplicate values")
    if not v.valid():
        raise FailedValidationError(v.errors)
"""

from typing import Dict, Hashable, Iterable, TypeVar

T = TypeVar("T", bound=Hashable)


class Validator:
    """Collects field-name → message pairs."""

    def __init__(self) -> None:
        self.errors: Dict[str, str] = {}

    def valid(self) -> bool:
        """True when no check has failed."""
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        """Record `message` for `key` unless the key already has one."""
        if key not in self.errors:
            self.errors[key] = message

    def check(self, ok: bool, key: str, message: str) -> None:
        """Record `message` for `key` when `ok` is false."""
        if not ok:
            self.add_error(key, message)


def unique(values: Iterable[T]) -> bool:
    """
    True if every element of `values` is distinct.

    Empty and single-element sequences are trivially unique.
    """
    seen = set()
    for value in values:
        if value in seen:
            return False
        seen.add(value)
    return True
