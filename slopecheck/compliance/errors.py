"""Errors raised by the compliance engine and the rule input layer."""

from __future__ import annotations


class InvalidArgumentError(ValueError):
    """An argument is outside the range the engine can give a verdict for."""


class RuleInputError(InvalidArgumentError):
    """User-entered rule rows or tolerance could not be parsed.

    ``row`` is the zero-based index of the offending row, or *None* when
    the problem is not tied to a row (tolerance, empty input).
    """

    def __init__(self, message: str, row: int | None = None) -> None:
        super().__init__(message)
        self.row = row
