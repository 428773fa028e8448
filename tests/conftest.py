"""
Shared fixtures for the causal structure test suite.

Synthetic data is generated from seeded numpy generators so every test run
sees the same observations.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping

import numpy as np
import pytest

from causal_structure import CausalObservation

START = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)


def _build_observations(columns: Mapping[str, np.ndarray]) -> list[CausalObservation]:
    names = list(columns)
    n = len(next(iter(columns.values())))
    return [
        CausalObservation(
            timestamp=START + timedelta(days=i),
            variables={name: float(columns[name][i]) for name in names},
        )
        for i in range(n)
    ]


@pytest.fixture
def make_observations() -> Callable[[Mapping[str, np.ndarray]], list[CausalObservation]]:
    """Factory turning column arrays into a list of daily observations."""
    return _build_observations


@pytest.fixture
def chain_columns() -> dict[str, np.ndarray]:
    """trigger → emotion → cognition linear-Gaussian chain, 200 samples."""
    rng = np.random.default_rng(42)
    n = 200
    trigger = rng.normal(0.0, 1.0, n)
    emotion = 0.8 * trigger + rng.normal(0.0, 0.3, n)
    cognition = 0.6 * emotion + rng.normal(0.0, 0.3, n)
    return {"trigger": trigger, "emotion": emotion, "cognition": cognition}


@pytest.fixture
def chain_observations(chain_columns, make_observations) -> list[CausalObservation]:
    return make_observations(chain_columns)


@pytest.fixture
def orthogonal_columns() -> Callable[[list[str], int], dict[str, np.ndarray]]:
    """
    Zero-mean ±1 square waves with periods 2, 4, 8, ...

    Every pair has a sample correlation of exactly zero.
    """
    def build(names: list[str], repeats: int = 10) -> dict[str, np.ndarray]:
        n = (2 ** len(names)) * repeats
        index = np.arange(n)
        return {
            name: np.where((index // (2 ** k)) % 2 == 0, 1.0, -1.0)
            for k, name in enumerate(names)
        }
    return build
