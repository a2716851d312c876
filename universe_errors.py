#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Strict error model for the field-resonance factorization core.

Redlines:
  - Invalid input is rejected at the boundary, never thrown from deep inside a search.
  - A strategy running out of iterations is NOT an error (it proposes nothing).
  - Configuration / invariant violations are hard failures.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class MathUniverseError(RuntimeError):
    """Base exception of the factorization core."""


class InvalidInputError(MathUniverseError):
    """Value is negative, non-integral, or an unparseable digit string."""

    def __init__(self, message: str, *, raw: Any = None):
        super().__init__(message)
        self.raw = raw


class InvalidOperationError(MathUniverseError, ArithmeticError):
    """Arithmetic helper called outside its domain (division by zero, gcd(0, 0), ...)."""


class ConfigurationError(MathUniverseError):
    """Deployment/config error: invalid env var or parameter value."""


class FieldConfigurationError(ConfigurationError):
    """Field constants table is malformed (count, sign, finiteness)."""


class FieldIndexError(MathUniverseError, IndexError):
    """Field index outside 0..7."""


class FactorizationInvariantError(MathUniverseError):
    """Merged factor list does not multiply back to the input. Must never happen."""

    def __init__(self, message: str, *, analysis: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.analysis: Dict[str, Any] = dict(analysis or {})
