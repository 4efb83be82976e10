"""Validation error type shared across flowerbreed."""

from __future__ import annotations

from typing import Any


class ValidationError(ValueError):
    """Raised when user-supplied data (genotypes, tables, config) is malformed.

    Attributes:
        code: Short machine-readable identifier, e.g. ``"bad_genotype"``
        message: Human-readable description
        context: Extra key/value details about the failing input
    """

    def __init__(self, code: str, message: str, /, **context: Any) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = dict(context)

    def __str__(self) -> str:
        if not self.context:
            return f"[{self.code}] {self.message}"
        details = ", ".join(f"{k}={v!r}" for k, v in sorted(self.context.items()))
        return f"[{self.code}] {self.message} ({details})"


__all__ = ["ValidationError"]
