"""Exceptions raised by studycal."""

from __future__ import annotations


class StudyCalError(Exception):
    """Base exception for studycal."""


class ValidationError(StudyCalError, ValueError):
    """Malformed caller input (bad date, out-of-range minutes, reversed range)."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))
