# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Industry Lock exception hierarchy.

All errors inherit from IndustryLockError. Resolution itself never raises:
these are caught at each precedence tier and degrade to the next one.
Only RequestValidationError reaches an HTTP caller (400).
"""

from __future__ import annotations


class IndustryLockError(Exception):
    """Base exception for all Industry Lock errors."""


class ConfigLoadError(IndustryLockError):
    """Industry config document could not be fetched or parsed."""


class ClassifierError(IndustryLockError):
    """Industry classifier failed to produce a result."""


class ClassifierTimeoutError(ClassifierError):
    """Industry classifier exceeded its overall time budget."""

    def __init__(self, message: str, *, timeout: float = 0.0) -> None:
        super().__init__(message)
        self.timeout = timeout


class KVStoreError(IndustryLockError):
    """Key-value cache document read or write failure."""


class RequestValidationError(IndustryLockError):
    """Public request body is missing a required field."""

    def __init__(self, message: str, *, field: str = "") -> None:
        super().__init__(message)
        self.field = field
