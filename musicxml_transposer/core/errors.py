"""
Error types raised by the transposition core.
"""

from __future__ import annotations

from typing import Optional


class TransposeError(Exception):
    """Base class for every fatal transposition failure."""


class InputFormatError(TransposeError, ValueError):
    """An interval, key order or input file was given in an unusable form."""


class ParseError(TransposeError):
    """The document is not well-formed markup."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        super().__init__(message)
        self.line = line
        self.column = column
