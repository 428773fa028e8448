import math

import numpy as np
import pytest

from causal_structure import CausalEdge, CausalGraph, CausalNode, Confidence, NodeType
from causal_structure.causal_statistics import (
    calculate_bic,
    calculate_fit_score,
    fisher_z,
    independence_p_value,
    mean,
    partial_correlation,
    pearson_correlation,
    residualize,
    standard_deviation,
    test_independence_ci,
    z_critical,
)


def _graph(*node_ids: str) -> CausalGraph:
    graph = CausalGraph()
    for node_id in node_ids:
        graph.add_node(CausalNode(node_id, node_id, node_id, NodeType.EMOTION))
    return graph


def test_moments_of_empty_input_are_zero():
    assert mean([]) == 0.0
    assert standard_deviation([]) == 0.0


def test_standard_deviation_is_population():
    assert standard_deviation([1.0, 3.0]) == pytest.approx(1.0)


def test_pearson_of_series_with_itself_is_one():
    x = np.array([0.3, 1.2, -0.7, 2.5, 0.0, 1.1])
    assert pearson_correlation(x, x) == pytest.approx(1.0)
    assert pearson_correlation(x, -x) == pytest.approx(-1.0)


def test_pearson_guards_degenerate_inputs():
    constant = np.full(10, 3.0)
    assert pearson_correlation(constant, constant) == 0.0
    assert pearson_correlation(constant, np.arange(10.0)) == 0.0
    assert pearson_correlation([1.0], [2.0]) == 0.0
    assert pearson_correlation([1.0, 2.0, 3.0], [1.0, 2.0]) == 0.0


def test_partial_correlation_without_controls_is_plain_correlation(chain_columns):
    x, y = chain_columns["trigger"], chain_columns["cognition"]
    assert partial_correlation(x, y, []) == pearson_correlation(x, y)


def test_partial_correlation_removes_mediated_dependence(chain_columns):
    trigger, emotion, cognition = (
        chain_columns["trigger"], chain_columns["emotion"], chain_columns["cognition"],
    )
    assert abs(pearson_correlation(trigger, cognition)) > 0.7
    assert abs(partial_correlation(trigger, cognition, [emotion])) < 0.2


def test_residualize_single_control_matches_univariate_regression(chain_columns):
    x, y = chain_columns["trigger"], chain_columns["emotion"]
    beta = pearson_correlation(y, x) * standard_deviation(y) / standard_deviation(x)
    alpha = mean(y) - beta * mean(x)
    expected = y - (beta * x + alpha)
    np.testing.assert_allclose(residualize(y, [x]), expected, atol=1e-9)


def test_residualize_without_controls_returns_copy():
    y = np.array([1.0, 2.0, 3.0])
    residuals = residualize(y, [])
    np.testing.assert_array_equal(residuals, y)
    residuals[0] = 99.0
    assert y[0] == 1.0


def test_fisher_z_is_finite_at_the_bounds():
    assert math.isfinite(fisher_z(1.0))
    assert math.isfinite(fisher_z(-1.0))
    assert fisher_z(1.0) == pytest.approx(-fisher_z(-1.0))
    assert fisher_z(0.0) == 0.0


def test_z_critical_table():
    assert z_critical(0.001) == 2.576
    assert z_critical(0.01) == 2.576
    assert z_critical(0.05) == 1.96
    assert z_critical(0.1) == 1.645


def test_under_powered_samples_are_treated_as_independent():
    assert test_independence_ci(0.99, n=5, num_conditioned=2, alpha=0.05) is True
    assert independence_p_value(0.99, n=5, num_conditioned=2) == 1.0


def test_strong_correlation_rejects_independence():
    assert test_independence_ci(0.5, n=200, num_conditioned=0, alpha=0.05) is False
    assert test_independence_ci(0.01, n=200, num_conditioned=0, alpha=0.05) is True
    assert independence_p_value(0.5, n=200, num_conditioned=0) < 0.001


def test_bic_is_infinite_without_observations():
    graph = _graph("a", "b")
    assert calculate_bic(graph, []) == math.inf
    assert calculate_fit_score(graph, []) == 0.0


def test_bic_prefers_true_parent(chain_observations):
    graph = _graph("trigger", "emotion", "cognition")
    empty_score = calculate_bic(graph, chain_observations)
    graph.add_edge(CausalEdge("trigger", "emotion", 0.8, Confidence.LEARNED))
    assert calculate_bic(graph, chain_observations) < empty_score - 2


def test_fit_score_averages_only_parented_nodes(chain_observations):
    graph = _graph("trigger", "emotion", "cognition")
    assert calculate_fit_score(graph, chain_observations) == 0.0

    graph.add_edge(CausalEdge("trigger", "emotion", 0.8, Confidence.LEARNED))
    fit = calculate_fit_score(graph, chain_observations)
    # Only emotion has a parent; its R² is high for the synthetic chain
    assert 0.8 < fit <= 1.0
