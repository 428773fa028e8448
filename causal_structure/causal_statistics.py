"""
causal_statistics.py

Statistics kernel for linear-Gaussian causal discovery.

Pure functions over numeric arrays: moments, Pearson and partial correlation,
least-squares residualization, Fisher z independence testing and graph
scores (BIC, mean R²). Degenerate inputs are guarded and never raise.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Final, Sequence, TypeAlias

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
from scipy import stats

from causal_structure.causal_graph import ObservationInput, column, observations_to_frame

if TYPE_CHECKING:
    from causal_structure.causal_graph import CausalGraph

FloatArray: TypeAlias = NDArray[np.float64]

FISHER_Z_CLAMP: Final[float] = 0.9999
VARIANCE_FLOOR: Final[float] = 0.001  # keeps log(variance) finite for perfect fits


def _as_array(values: ArrayLike) -> FloatArray:
    return np.asarray(values, dtype=np.float64)


# =============================================================================
# MOMENTS & CORRELATION
# =============================================================================

def mean(values: ArrayLike) -> float:
    arr = _as_array(values)
    return float(arr.mean()) if arr.size else 0.0


def standard_deviation(values: ArrayLike) -> float:
    """Population standard deviation; 0 for empty input."""
    arr = _as_array(values)
    return float(arr.std()) if arr.size else 0.0


def pearson_correlation(x: ArrayLike, y: ArrayLike) -> float:
    """
    Pearson correlation coefficient.

    Returns 0 when the inputs differ in length, have fewer than two points
    or either has zero variance.
    """
    x_arr, y_arr = _as_array(x), _as_array(y)
    if x_arr.shape != y_arr.shape or x_arr.size < 2:
        return 0.0

    dx = x_arr - x_arr.mean()
    dy = y_arr - y_arr.mean()
    denominator = math.sqrt(float(np.dot(dx, dx)) * float(np.dot(dy, dy)))
    if denominator == 0.0:
        return 0.0
    return float(np.clip(np.dot(dx, dy) / denominator, -1.0, 1.0))


def residualize(y: ArrayLike, controls: Sequence[ArrayLike]) -> FloatArray:
    """
    Residuals of ``y`` after removing the linear effect of ``controls``.

    Fits y ~ 1 + controls jointly by ordinary least squares. For a single
    control this is the univariate regression beta = r * sd(y) / sd(x).

    Args:
        y: Outcome values [n]
        controls: Control variables, each [n]

    Returns:
        Residual vector [n]; ``y`` unchanged when there are no controls
    """
    y_arr = _as_array(y)
    if len(controls) == 0:
        return y_arr.copy()

    design = np.column_stack([np.ones(y_arr.size), *(_as_array(c) for c in controls)])
    coeffs, *_ = np.linalg.lstsq(design, y_arr, rcond=None)
    return y_arr - design @ coeffs


def partial_correlation(x: ArrayLike, y: ArrayLike, controls: Sequence[ArrayLike]) -> float:
    """Correlation of x and y after regressing out ``controls`` from both."""
    if len(controls) == 0:
        return pearson_correlation(x, y)
    return pearson_correlation(residualize(x, controls), residualize(y, controls))


# =============================================================================
# INDEPENDENCE TESTING
# =============================================================================

def fisher_z(r: float) -> float:
    """Fisher's z-transformation with r clamped to avoid infinities."""
    clamped = max(-FISHER_Z_CLAMP, min(FISHER_Z_CLAMP, r))
    return 0.5 * math.log((1 + clamped) / (1 - clamped))


def z_critical(alpha: float) -> float:
    """Two-sided critical value for the common significance levels."""
    if alpha <= 0.01:
        return 2.576
    if alpha <= 0.05:
        return 1.96
    return 1.645


def _z_statistic(partial_corr: float, n: int, num_conditioned: int) -> float:
    return fisher_z(partial_corr) * math.sqrt(n - num_conditioned - 3)


def test_independence_ci(
    partial_corr: float,
    n: int,
    num_conditioned: int,
    alpha: float,
) -> bool:
    """
    Fisher z test of a (partial) correlation against zero.

    Args:
        partial_corr: Sample partial correlation
        n: Number of observations
        num_conditioned: Size of the conditioning set
        alpha: Significance level

    Returns:
        True when independence is not rejected. Samples with
        ``n <= num_conditioned + 3`` are reported as independent.
    """
    if n <= num_conditioned + 3:
        return True
    return abs(_z_statistic(partial_corr, n, num_conditioned)) < z_critical(alpha)


# Keep pytest from collecting this when imported into test modules
test_independence_ci.__test__ = False  # type: ignore[attr-defined]


def independence_p_value(partial_corr: float, n: int, num_conditioned: int) -> float:
    """Two-sided p-value of the Fisher z test; 1.0 when under-powered."""
    if n <= num_conditioned + 3:
        return 1.0
    z = _z_statistic(partial_corr, n, num_conditioned)
    return float(2.0 * stats.norm.sf(abs(z)))


# =============================================================================
# GRAPH SCORES
# =============================================================================

def _node_residuals(graph: CausalGraph, data: pd.DataFrame, node_id: str) -> tuple[FloatArray, list[str]]:
    parents = graph.parents(node_id)
    values = column(data, node_id)
    if parents:
        return residualize(values, [column(data, p) for p in parents]), parents
    return values - values.mean(), parents


def calculate_bic(graph: CausalGraph, observations: ObservationInput) -> float:
    """
    Bayesian Information Criterion of a linear-Gaussian DAG (lower is better).

    Each node is regressed on its current parents;
    BIC = -2 * logL + k * ln(n) with k = sum(|parents| + 1).

    Returns:
        BIC score, ``inf`` for zero observations
    """
    data = observations_to_frame(observations)
    n = len(data)
    if n == 0:
        return math.inf

    log_likelihood = 0.0
    num_parameters = 0

    for node_id in graph.nodes:
        residuals, parents = _node_residuals(graph, data, node_id)
        num_parameters += len(parents) + 1
        variance = float(np.dot(residuals, residuals)) / n
        log_likelihood -= (n / 2) * math.log(variance + VARIANCE_FLOOR)

    return -2 * log_likelihood + num_parameters * math.log(n)


def calculate_fit_score(graph: CausalGraph, observations: ObservationInput) -> float:
    """
    Mean R² over nodes that have at least one parent.

    Returns:
        Mean of 1 - SSres/SStot; 0 without observations or parented nodes
    """
    data = observations_to_frame(observations)
    if len(data) == 0:
        return 0.0

    r_squared: list[float] = []
    for node_id in graph.nodes:
        if not graph.parents(node_id):
            continue
        values = column(data, node_id)
        residuals, _ = _node_residuals(graph, data, node_id)
        ss_tot = float(np.sum((values - values.mean()) ** 2))
        ss_res = float(np.dot(residuals, residuals))
        r_squared.append(1 - ss_res / ss_tot if ss_tot > 0 else 0.0)

    return float(np.mean(r_squared)) if r_squared else 0.0
