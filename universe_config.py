#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration of the factorization core.

Every knob lives in one frozen dataclass. Values come either from explicit
constructor arguments or from MATH_UNIVERSE_* environment variables.

Redlines:
  - No silent downgrade: an invalid env value raises ConfigurationError.
  - Knobs only tune heuristic search effort; none of them can change whether
    a returned factorization is correct.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, replace
from fractions import Fraction
from typing import Any, Dict, Optional, Tuple

from universe_errors import ConfigurationError

ENV_PREFIX = "MATH_UNIVERSE_"

# Fixed execution order (increasing cost). A config may select a subset but never reorder.
STRATEGY_ORDER: Tuple[str, ...] = (
    "artifact-guided",
    "resonance-proximity",
    "structural-landmark",
    "pollard-rho",
    "trial-division",
)


# =============================================================================
# Strict env readers
# =============================================================================


def _env_raw(name: str) -> Optional[str]:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or not str(raw).strip():
        return None
    return str(raw).strip()


def _env_int(name: str, *, default: int) -> int:
    """
    Read an env var as int (base-10), strict.
    """
    raw = _env_raw(name)
    if raw is None:
        return int(default)
    try:
        return int(raw, 10)
    except Exception as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer (base-10), got {raw!r}") from e


def _env_fraction(name: str, *, default: float) -> float:
    raw = _env_raw(name)
    if raw is None:
        return float(default)
    try:
        return float(Fraction(raw))
    except Exception as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a decimal or rational string, got {raw!r}") from e


def _env_strict_enum(name: str, *, allowed: Tuple[str, ...], default: str) -> str:
    """
    Read an env var as an enum-like string with strict validation.
    """
    raw = _env_raw(name)
    if raw is None:
        return str(default)
    val = raw.upper()
    if val not in allowed:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be one of {list(allowed)}, got {raw!r}")
    return val


def _env_strategies(name: str) -> Tuple[str, ...]:
    raw = _env_raw(name)
    if raw is None:
        return STRATEGY_ORDER
    requested = [s.strip().lower() for s in raw.split(",") if s.strip()]
    unknown = [s for s in requested if s not in STRATEGY_ORDER]
    if unknown:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} contains unknown strategies {unknown}; allowed {list(STRATEGY_ORDER)}"
        )
    return tuple(s for s in STRATEGY_ORDER if s in requested)


# =============================================================================
# Config object
# =============================================================================


@dataclass(frozen=True)
class UniverseConfig:
    """
    Search-effort and resource knobs.

    sieve_limit          - primality lookup table covers [0, sieve_limit)
    small_prime_bound    - primes <= bound are stripped by trial division first
    mr_extra_rounds      - extra seeded Miller-Rabin witnesses beyond the deterministic range
    artifact_window      - largest candidate the artifact-guided search will look at
    artifact_cap         - iteration cap of the artifact-guided search
    resonance_window     - how far below isqrt(n) the resonance-proximity search walks
    resonance_cap        - iteration cap of the resonance-proximity search
    resonance_tolerance  - relative tolerance of |R(d)R(c) - R(n)| / R(n)
    landmark_pages       - number of 48-wide pages probed by the landmark search
    rho_cap_min/max      - clamp of the size-scaled Pollard rho iteration cap
    trial_cap            - hard cap of the trial-division fallback
    max_total_iterations - global budget across a whole call tree (0 = unbounded)
    parallel_workers     - >1 evaluates the top-level split in a thread pool
    cache_enabled        - memoisation switch (results must not depend on it)
    strategies           - enabled subset, always run in STRATEGY_ORDER
    """

    sieve_limit: int = 1 << 16
    small_prime_bound: int = 97
    mr_extra_rounds: int = 8
    artifact_window: int = 1 << 16
    artifact_cap: int = 4096
    resonance_window: int = 1 << 14
    resonance_cap: int = 4096
    resonance_tolerance: float = 0.25
    landmark_pages: int = 256
    rho_cap_min: int = 1 << 12
    rho_cap_max: int = 1 << 22
    trial_cap: int = 1 << 18
    max_total_iterations: int = 0
    parallel_workers: int = 1
    cache_enabled: bool = True
    strategies: Tuple[str, ...] = field(default=STRATEGY_ORDER)

    def __post_init__(self) -> None:
        def _need_int(name: str, lo: int) -> None:
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int) or v < lo:
                raise ConfigurationError(f"{name} must be int >= {lo}, got {v!r}")

        _need_int("sieve_limit", 256)
        _need_int("small_prime_bound", 2)
        _need_int("mr_extra_rounds", 0)
        _need_int("artifact_window", 3)
        _need_int("artifact_cap", 0)
        _need_int("resonance_window", 0)
        _need_int("resonance_cap", 0)
        _need_int("landmark_pages", 0)
        _need_int("rho_cap_min", 0)
        _need_int("rho_cap_max", 0)
        _need_int("trial_cap", 0)
        _need_int("max_total_iterations", 0)
        _need_int("parallel_workers", 1)
        if self.small_prime_bound >= self.sieve_limit:
            raise ConfigurationError(
                f"small_prime_bound ({self.small_prime_bound}) must be below sieve_limit ({self.sieve_limit})"
            )
        if self.rho_cap_min > self.rho_cap_max:
            raise ConfigurationError(f"rho_cap_min ({self.rho_cap_min}) exceeds rho_cap_max ({self.rho_cap_max})")
        tol = self.resonance_tolerance
        if isinstance(tol, bool) or not isinstance(tol, (int, float)) or not math.isfinite(tol) or tol < 0:
            raise ConfigurationError(f"resonance_tolerance must be a finite float >= 0, got {tol!r}")
        if not isinstance(self.cache_enabled, bool):
            raise ConfigurationError(f"cache_enabled must be bool, got {self.cache_enabled!r}")
        strategies = tuple(self.strategies)
        unknown = [s for s in strategies if s not in STRATEGY_ORDER]
        if unknown:
            raise ConfigurationError(f"unknown strategies {unknown}; allowed {list(STRATEGY_ORDER)}")
        # Normalise to the fixed order, dropping duplicates.
        object.__setattr__(self, "strategies", tuple(s for s in STRATEGY_ORDER if s in strategies))

    @property
    def budget_unbounded(self) -> bool:
        return self.max_total_iterations == 0

    def with_overrides(self, **overrides: Any) -> "UniverseConfig":
        return replace(self, **overrides)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "sieve_limit": int(self.sieve_limit),
            "small_prime_bound": int(self.small_prime_bound),
            "mr_extra_rounds": int(self.mr_extra_rounds),
            "artifact_window": int(self.artifact_window),
            "artifact_cap": int(self.artifact_cap),
            "resonance_window": int(self.resonance_window),
            "resonance_cap": int(self.resonance_cap),
            "resonance_tolerance": float(self.resonance_tolerance),
            "landmark_pages": int(self.landmark_pages),
            "rho_cap_min": int(self.rho_cap_min),
            "rho_cap_max": int(self.rho_cap_max),
            "trial_cap": int(self.trial_cap),
            "max_total_iterations": int(self.max_total_iterations),
            "parallel_workers": int(self.parallel_workers),
            "cache_enabled": bool(self.cache_enabled),
            "strategies": list(self.strategies),
        }

    @classmethod
    def from_env(cls) -> "UniverseConfig":
        """Build a config from MATH_UNIVERSE_* variables; unset variables keep defaults."""
        d = cls()
        cache = _env_strict_enum("CACHE", allowed=("ON", "OFF"), default="ON")
        return cls(
            sieve_limit=_env_int("SIEVE_LIMIT", default=d.sieve_limit),
            small_prime_bound=_env_int("SMALL_PRIME_BOUND", default=d.small_prime_bound),
            mr_extra_rounds=_env_int("MR_EXTRA_ROUNDS", default=d.mr_extra_rounds),
            artifact_window=_env_int("ARTIFACT_WINDOW", default=d.artifact_window),
            artifact_cap=_env_int("ARTIFACT_CAP", default=d.artifact_cap),
            resonance_window=_env_int("RESONANCE_WINDOW", default=d.resonance_window),
            resonance_cap=_env_int("RESONANCE_CAP", default=d.resonance_cap),
            resonance_tolerance=_env_fraction("RESONANCE_TOLERANCE", default=d.resonance_tolerance),
            landmark_pages=_env_int("LANDMARK_PAGES", default=d.landmark_pages),
            rho_cap_min=_env_int("RHO_CAP_MIN", default=d.rho_cap_min),
            rho_cap_max=_env_int("RHO_CAP_MAX", default=d.rho_cap_max),
            trial_cap=_env_int("TRIAL_CAP", default=d.trial_cap),
            max_total_iterations=_env_int("MAX_TOTAL_ITERATIONS", default=d.max_total_iterations),
            parallel_workers=_env_int("PARALLEL_WORKERS", default=d.parallel_workers),
            cache_enabled=(cache == "ON"),
            strategies=_env_strategies("STRATEGIES"),
        )
