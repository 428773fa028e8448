"""
causal_discovery_engine.py

Hybrid causal structure discovery for personal mental-health graphs.

This module provides:
- Graph initialization from observations and expert domain priors
- Constraint-based skeleton pruning (PC-style conditional independence)
- Score-based structure search (GES-style forward/backward BIC search)
- DAG enforcement, validation and incremental updates
- Text reporting of discovery results

Designed for small (<100 node) linear-Gaussian personalization graphs.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import combinations
from pathlib import Path
from typing import Any, Callable, ClassVar, Final, Sequence

import numpy as np
import pandas as pd

from causal_structure.causal_graph import (
    CausalEdge,
    CausalGraph,
    CausalNode,
    CausalObservation,
    Confidence,
    NodeType,
    ObservationInput,
    column,
    edge_id_for,
    observations_to_frame,
)
from causal_structure.causal_statistics import (
    FloatArray,
    calculate_bic,
    calculate_fit_score,
    independence_p_value,
    partial_correlation,
    pearson_correlation,
    test_independence_ci,
)
from causal_structure.discovery_config import DiscoveryConfig, DomainPrior
from causal_structure.graph_validation import (
    GraphValidationResult,
    ensure_dag,
    validate_graph,
    violates_temporal_order,
)

logger = logging.getLogger(__name__)

StopCallback = Callable[[], bool]

# Variable-id prefixes that identify a node type when no template exists
NODE_TYPE_PREFIXES: Final[dict[str, NodeType]] = {
    **{node_type.value: node_type for node_type in NodeType},
    "physio": NodeType.PHYSIOLOGICAL,
}


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(slots=True)
class SearchOutcome:
    """What the score-based phase changed."""
    pruned_edges: list[str] = field(default_factory=list)
    strength_updates: dict[str, float] = field(default_factory=dict)
    iterations: int = 0
    stopped_early: bool = False


@dataclass
class DiscoveryResult:
    """Complete result of one discovery run."""

    graph: CausalGraph
    fit_score: float
    complexity_penalty: float
    overall_confidence: float
    low_confidence_edges: list[str]

    new_edges: list[CausalEdge] = field(default_factory=list)
    removed_edges: list[str] = field(default_factory=list)
    strength_updates: dict[str, float] = field(default_factory=dict)
    validation: GraphValidationResult | None = None

    # Run metadata
    iterations: int = 0
    stopped_early: bool = False
    n_observations: int = 0
    execution_time_seconds: float = 0.0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def get_edge(self, source_id: str, target_id: str) -> CausalEdge | None:
        """Edge source→target of the discovered graph, if present."""
        return self.graph.get_edge(source_id, target_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "metadata": {
                "timestamp": self.timestamp,
                "execution_time_seconds": round(self.execution_time_seconds, 3),
                "n_observations": self.n_observations,
                "iterations": self.iterations,
                "stopped_early": self.stopped_early,
            },
            "metrics": {
                "fit_score": round(self.fit_score, 4),
                "complexity_penalty": self.complexity_penalty if np.isfinite(self.complexity_penalty) else None,
                "overall_confidence": round(self.overall_confidence, 4),
            },
            "graph": self.graph.to_dict(),
            "new_edges": [e.id for e in self.new_edges],
            "removed_edges": list(self.removed_edges),
            "strength_updates": {k: round(v, 4) for k, v in self.strength_updates.items()},
            "low_confidence_edges": list(self.low_confidence_edges),
            "validation": self.validation.to_dict() if self.validation else None,
        }

    def save(self, path: str | Path) -> None:
        """Save result to JSON file."""
        path = Path(path)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)


# =============================================================================
# MAIN ENGINE
# =============================================================================

class CausalDiscoveryEngine:
    """
    Hybrid causal discovery engine (PC skeleton pruning + GES-style search).

    Pipeline:
        observations → initialize graph with priors → constraint phase
        → score phase → ensure DAG → validate → DiscoveryResult

    Example:
        >>> engine = CausalDiscoveryEngine(significance_level=0.01)
        >>> result = engine.discover_structure(observations)
        >>> result.graph.topological_order
        ['trigger_stress', 'emotion_anxiety', 'cognition_catastrophizing']
    """

    CONFIDENCE_WEIGHTS: ClassVar[dict[Confidence, float]] = {
        Confidence.ESTABLISHED: 1.0,
        Confidence.PROBABLE: 0.75,
        Confidence.LEARNED: 0.6,
        Confidence.HYPOTHESIZED: 0.5,
    }
    PRIOR_BLEND_WEIGHT: ClassVar[float] = 0.7
    MAX_SUGGESTED_PARENTS: ClassVar[int] = 3
    PARENT_CORRELATION_THRESHOLD: ClassVar[float] = 0.2
    # Structural p-value approximations for test_independence without data
    DEPENDENT_P_VALUE: ClassVar[float] = 0.01
    INDEPENDENT_P_VALUE: ClassVar[float] = 0.5

    def __init__(self, config: DiscoveryConfig | None = None, **overrides: Any) -> None:
        """
        Initialize discovery engine.

        Args:
            config: Base configuration (defaults when None)
            **overrides: Individual DiscoveryConfig fields to replace
        """
        base = config or DiscoveryConfig()
        self.config = base.merged(**overrides) if overrides else base

    def _resolve_config(self, config: DiscoveryConfig | None, overrides: dict[str, Any]) -> DiscoveryConfig:
        resolved = config or self.config
        return resolved.merged(**overrides) if overrides else resolved

    # -------------------------------------------------------------------------
    # Main discovery
    # -------------------------------------------------------------------------

    def discover_structure(
        self,
        observations: ObservationInput,
        config: DiscoveryConfig | None = None,
        should_stop: StopCallback | None = None,
        **overrides: Any,
    ) -> DiscoveryResult:
        """
        Discover a causal DAG from observations.

        Args:
            observations: Sequence of CausalObservation or a DataFrame
            config: Configuration for this run (engine config when None)
            should_stop: Polled between score-phase rounds; True cancels the search
            **overrides: Individual DiscoveryConfig fields for this run

        Returns:
            DiscoveryResult with the graph and fit metrics
        """
        config = self._resolve_config(config, overrides)
        data = observations_to_frame(observations)
        n = len(data)
        start_time = time.perf_counter()

        if n < config.min_observations:
            logger.warning(
                "Discovering structure from %d observations (min_observations=%d); "
                "edges will be reported as low confidence",
                n, config.min_observations,
            )

        graph = self.initialize_graph_with_priors(data, config)
        removed = self.constraint_based_phase(graph, data, config)
        search = self.score_based_phase(graph, data, config, should_stop=should_stop)
        removed += search.pruned_edges
        removed += self.ensure_dag(graph)

        fit_score = calculate_fit_score(graph, data)
        complexity_penalty = calculate_bic(graph, data)
        execution_time = time.perf_counter() - start_time

        result = DiscoveryResult(
            graph=graph,
            fit_score=fit_score,
            complexity_penalty=complexity_penalty,
            overall_confidence=self.calculate_overall_confidence(graph),
            low_confidence_edges=[
                e.id for e in graph.edges.values() if e.evidence_count < config.min_observations
            ],
            new_edges=[e for e in graph.edges.values() if e.confidence is Confidence.LEARNED],
            removed_edges=removed,
            strength_updates=search.strength_updates,
            validation=self.validate_graph(graph, config.required_edges),
            iterations=search.iterations,
            stopped_early=search.stopped_early,
            n_observations=n,
            execution_time_seconds=execution_time,
        )

        logger.info(
            "Discovered %d edges over %d nodes from %d observations in %.3fs "
            "(fit=%.3f, BIC=%.1f)",
            len(graph.edges), len(graph.nodes), n, execution_time, fit_score, complexity_penalty,
        )
        return result

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    def initialize_graph_with_priors(
        self,
        observations: ObservationInput,
        config: DiscoveryConfig | None = None,
    ) -> CausalGraph:
        """
        Build the node set from observed variables and seed prior edges.

        Node baselines and volatility come from the data; names, types and
        flags from the domain catalogue. Priors and required edges are added
        when both endpoints were observed.
        """
        config = config or self.config
        data = observations_to_frame(observations)
        observed_at = _last_timestamp(data)
        graph = CausalGraph()

        for node_id in data.columns:
            values = column(data, node_id)
            template = config.catalogue.template(node_id)
            graph.add_node(CausalNode(
                id=node_id,
                name=template.name if template else node_id,
                name_ru=template.name_ru if template else node_id,
                type=self._resolve_node_type(node_id, config),
                value=float(values[-1]) if values.size else 0.0,
                observed_at=observed_at,
                is_observable=template.is_observable if template else True,
                is_manipulable=template.is_manipulable if template else False,
                baseline_value=float(values.mean()) if values.size else 0.0,
                volatility=float(values.std()) if values.size > 1 else 0.5,
            ))

        required = [
            DomainPrior(source_id, target_id, confidence=Confidence.ESTABLISHED)
            for source_id, target_id in config.required_edges
        ]
        for prior in (*config.effective_priors, *required):
            if prior.source_id not in graph.nodes or prior.target_id not in graph.nodes:
                continue
            if graph.has_edge(prior.source_id, prior.target_id):
                continue
            if config.is_forbidden(prior.source_id, prior.target_id):
                logger.warning(
                    "Skipping prior %s: edge is forbidden by configuration",
                    edge_id_for(prior.source_id, prior.target_id),
                )
                continue
            graph.add_edge(CausalEdge(
                source_id=prior.source_id,
                target_id=prior.target_id,
                strength=prior.strength,
                confidence=prior.confidence,
                type=prior.type,
                min_lag_hours=prior.min_lag_hours,
                max_lag_hours=prior.max_lag_hours,
                peak_lag_hours=prior.peak_lag_hours,
                evidence_count=0,
                last_updated=observed_at,
            ))

        graph.is_acyclic = not graph.find_cycles()
        graph.topological_order = graph.topological_sort()
        logger.debug(
            "Initialized graph with %d nodes and %d prior edges",
            len(graph.nodes), len(graph.edges),
        )
        return graph

    def _resolve_node_type(self, node_id: str, config: DiscoveryConfig) -> NodeType:
        template = config.catalogue.template(node_id)
        if template is not None:
            return template.type
        prefix = node_id.split("_", 1)[0].lower()
        return NODE_TYPE_PREFIXES.get(prefix, config.default_node_type)

    # -------------------------------------------------------------------------
    # Constraint-based phase (PC)
    # -------------------------------------------------------------------------

    def constraint_based_phase(
        self,
        graph: CausalGraph,
        observations: ObservationInput,
        config: DiscoveryConfig | None = None,
    ) -> list[str]:
        """
        Remove edges whose endpoints test conditionally independent.

        Conditioning sets of size 0 up to ``max_conditioning_size`` are drawn
        from all other nodes; the first independent set removes the edge.
        Established edges are never removed.

        Returns:
            Ids of the removed edges
        """
        config = config or self.config
        data = observations_to_frame(observations)
        n = len(data)
        columns = {node_id: column(data, node_id) for node_id in graph.nodes}
        removed: list[str] = []

        for edge in list(graph.edges.values()):
            if edge.is_protected:
                continue
            separating_set = self._find_separating_set(
                edge.source_id, edge.target_id, columns, n, config,
            )
            if separating_set is None:
                continue
            graph.remove_edge(edge.id)
            removed.append(edge.id)
            logger.debug(
                "Pruned %s: independent given {%s}", edge.id, ", ".join(separating_set),
            )

        return removed

    def _find_separating_set(
        self,
        source_id: str,
        target_id: str,
        columns: dict[str, FloatArray],
        n: int,
        config: DiscoveryConfig,
    ) -> tuple[str, ...] | None:
        conditioners = [node_id for node_id in columns if node_id not in (source_id, target_id)]
        max_size = min(len(conditioners), config.max_conditioning_size)

        for size in range(max_size + 1):
            for subset in combinations(conditioners, size):
                p_corr = partial_correlation(
                    columns[source_id], columns[target_id], [columns[c] for c in subset],
                )
                if test_independence_ci(p_corr, n, len(subset), config.significance_level):
                    return subset
        return None

    # -------------------------------------------------------------------------
    # Score-based phase (GES-style)
    # -------------------------------------------------------------------------

    def score_based_phase(
        self,
        graph: CausalGraph,
        observations: ObservationInput,
        config: DiscoveryConfig | None = None,
        should_stop: StopCallback | None = None,
    ) -> SearchOutcome:
        """
        Greedy BIC search: forward edge additions, backward pruning of learned
        edges, then re-estimation of every edge strength.

        Rounds stop when none accepts an edge, at ``max_iterations``, when the
        time budget runs out or when ``should_stop`` returns True.
        """
        config = config or self.config
        data = observations_to_frame(observations)
        n = len(data)
        columns = {node_id: column(data, node_id) for node_id in graph.nodes}
        outcome = SearchOutcome()
        start_time = time.perf_counter()

        correlations: dict[tuple[str, str], float] = {}
        current_score = calculate_bic(graph, data)

        while outcome.iterations < config.max_iterations:
            if self._should_stop(start_time, config, should_stop):
                outcome.stopped_early = True
                logger.warning(
                    "Score search stopped after %d round(s): budget exhausted or cancelled",
                    outcome.iterations,
                )
                break

            outcome.iterations += 1
            accepted = 0

            for source_id in columns:
                for target_id in columns:
                    if source_id == target_id or not self._is_candidate(graph, source_id, target_id, config):
                        continue

                    key = (source_id, target_id) if source_id < target_id else (target_id, source_id)
                    if key not in correlations:
                        correlations[key] = pearson_correlation(columns[source_id], columns[target_id])
                    correlation = correlations[key]
                    if abs(correlation) < config.correlation_threshold:
                        continue

                    edge = graph.add_edge(CausalEdge(
                        source_id=source_id,
                        target_id=target_id,
                        strength=correlation,
                        confidence=Confidence.LEARNED,
                        evidence_count=n,
                    ))
                    new_score = calculate_bic(graph, data)

                    if new_score < current_score - config.bic_improvement_threshold:
                        current_score = new_score
                        accepted += 1
                    else:
                        graph.remove_edge(edge.id)

            logger.debug("Round %d: accepted %d edge(s), BIC=%.2f", outcome.iterations, accepted, current_score)
            if accepted == 0:
                break

        outcome.pruned_edges = self._backward_prune(graph, data, current_score)
        outcome.strength_updates = self._reestimate_strengths(graph, columns, n)
        return outcome

    def _is_candidate(
        self,
        graph: CausalGraph,
        source_id: str,
        target_id: str,
        config: DiscoveryConfig,
    ) -> bool:
        if graph.has_edge(source_id, target_id) or config.is_forbidden(source_id, target_id):
            return False
        if config.respect_temporal_order and violates_temporal_order(
            graph.nodes[source_id].type, graph.nodes[target_id].type,
        ):
            return False
        if graph.would_create_cycle(source_id, target_id):
            return False
        return len(graph.parents(target_id)) < config.max_parents

    @staticmethod
    def _should_stop(start_time: float, config: DiscoveryConfig, should_stop: StopCallback | None) -> bool:
        if should_stop is not None and should_stop():
            return True
        if config.time_budget_seconds is None:
            return False
        return time.perf_counter() - start_time >= config.time_budget_seconds

    def _backward_prune(self, graph: CausalGraph, data: pd.DataFrame, current_score: float) -> list[str]:
        # Drop learned edges whose removal does not worsen BIC, until stable
        pruned: list[str] = []
        changed = True
        while changed:
            changed = False
            learned = [e.id for e in graph.edges.values() if e.confidence is Confidence.LEARNED]
            for edge_id in learned:
                edge = graph.remove_edge(edge_id)
                new_score = calculate_bic(graph, data)
                if new_score <= current_score:
                    current_score = new_score
                    pruned.append(edge_id)
                    changed = True
                    logger.debug("Backward step removed %s (BIC=%.2f)", edge_id, new_score)
                else:
                    graph.add_edge(edge)
        return pruned

    def _reestimate_strengths(
        self,
        graph: CausalGraph,
        columns: dict[str, FloatArray],
        n: int,
    ) -> dict[str, float]:
        """
        Partial correlation controlling for the target's other parents.

        Established and probable edges blend 70/30 with their prior strength.
        """
        updates: dict[str, float] = {}
        now = datetime.now(timezone.utc)

        for edge in graph.edges.values():
            other_parents = [p for p in graph.parents(edge.target_id) if p != edge.source_id]
            p_corr = partial_correlation(
                columns[edge.source_id],
                columns[edge.target_id],
                [columns[p] for p in other_parents],
            )

            if edge.confidence in (Confidence.ESTABLISHED, Confidence.PROBABLE):
                strength = self.PRIOR_BLEND_WEIGHT * edge.strength + (1 - self.PRIOR_BLEND_WEIGHT) * p_corr
            else:
                strength = p_corr

            if strength != edge.strength:
                updates[edge.id] = strength
            edge.strength = strength
            edge.evidence_count = n
            edge.last_updated = now

        return updates

    # -------------------------------------------------------------------------
    # DAG enforcement & validation
    # -------------------------------------------------------------------------

    def ensure_dag(self, graph: CausalGraph) -> list[str]:
        """Break cycles by removing their weakest edges; returns removed ids."""
        return ensure_dag(graph)

    def validate_graph(
        self,
        graph: CausalGraph,
        required_edges: Sequence[tuple[str, str]] | None = None,
    ) -> GraphValidationResult:
        """Validate ``graph``; required edges default to the engine config."""
        result = validate_graph(
            graph, self.config.required_edges if required_edges is None else required_edges,
        )
        if not result.is_valid:
            logger.info(
                "Graph %s failed validation: %d cycle(s), %d violation(s)",
                graph.id, len(result.cycles), len(result.violations),
            )
        return result

    # -------------------------------------------------------------------------
    # Incremental learning
    # -------------------------------------------------------------------------

    def update_with_new_observation(
        self,
        graph: CausalGraph,
        observation: CausalObservation,
    ) -> CausalGraph:
        """
        Fold one observation into the graph without changing its structure.

        Baselines follow an exponential moving average, current values and
        timestamps are overwritten and every edge gains one unit of evidence.
        Variables without a node are ignored.
        """
        alpha = self.config.baseline_smoothing

        for node_id, value in observation.variables.items():
            node = graph.nodes.get(node_id)
            if node is None:
                continue
            node.baseline_value = alpha * value + (1 - alpha) * node.baseline_value
            node.value = value
            node.observed_at = observation.timestamp

        for edge in graph.edges.values():
            edge.evidence_count += 1

        graph.touch()
        return graph

    # -------------------------------------------------------------------------
    # Structure learning utilities
    # -------------------------------------------------------------------------

    def test_independence(
        self,
        graph: CausalGraph,
        node_a: str,
        node_b: str,
        given: Sequence[str] = (),
        observations: ObservationInput | None = None,
    ) -> float:
        """
        P-value for the independence of two nodes given a conditioning set.

        With observations, the Fisher z p-value of their partial correlation.
        Without, a structural approximation: a directed path from ``node_a``
        to ``node_b`` that avoids ``given`` means dependence.
        """
        if observations is None:
            if graph.has_path(node_a, node_b, blocked=given):
                return self.DEPENDENT_P_VALUE
            return self.INDEPENDENT_P_VALUE

        data = observations_to_frame(observations)
        p_corr = partial_correlation(
            column(data, node_a), column(data, node_b), [column(data, g) for g in given],
        )
        return independence_p_value(p_corr, len(data), len(given))

    def score_dag(self, graph: CausalGraph, observations: ObservationInput) -> float:
        """BIC of ``graph`` against the observations (lower is better)."""
        return calculate_bic(graph, observations)

    def find_best_parents(
        self,
        node_id: str,
        candidates: Sequence[str],
        observations: ObservationInput,
    ) -> list[str]:
        """
        Up to three candidates ranked by |correlation| with the node.

        Candidates at or below the 0.2 correlation threshold are dropped.
        """
        data = observations_to_frame(observations)
        target = column(data, node_id)
        scored = [
            (candidate, abs(pearson_correlation(target, column(data, candidate))))
            for candidate in candidates
            if candidate != node_id
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return [
            candidate for candidate, score in scored[: self.MAX_SUGGESTED_PARENTS]
            if score > self.PARENT_CORRELATION_THRESHOLD
        ]

    def calculate_overall_confidence(self, graph: CausalGraph) -> float:
        """Mean confidence-tier weight over all edges (0 for an empty graph)."""
        if not graph.edges:
            return 0.0
        total = sum(self.CONFIDENCE_WEIGHTS.get(e.confidence, 0.5) for e in graph.edges.values())
        return total / len(graph.edges)


def _last_timestamp(data: pd.DataFrame) -> datetime:
    if len(data) and isinstance(data.index, pd.DatetimeIndex):
        return data.index[-1].to_pydatetime()
    return datetime.now(timezone.utc)


# =============================================================================
# REPORTING
# =============================================================================

class DiscoveryReporter:
    """Plain-text report generator for discovery results."""

    HEADER_WIDTH: Final[int] = 78

    def __init__(self, use_color: bool = True) -> None:
        self.use_color = use_color

    def _color(self, text: str, color: str) -> str:
        """Apply ANSI color if enabled."""
        if not self.use_color:
            return text

        colors = {
            "green": "\033[92m",
            "red": "\033[91m",
            "yellow": "\033[93m",
            "bold": "\033[1m",
            "reset": "\033[0m",
        }

        return f"{colors.get(color, '')}{text}{colors['reset']}"

    def _header(self, title: str) -> str:
        line = "=" * self.HEADER_WIDTH
        return f"\n{line}\n{title.center(self.HEADER_WIDTH)}\n{line}"

    def _subheader(self, title: str) -> str:
        return f"\n{title}\n{'-' * len(title)}"

    def _progress_bar(self, value: float, width: int = 20) -> str:
        filled = int(max(0.0, min(1.0, value)) * width)
        return f"[{'█' * filled}{'░' * (width - filled)}]"

    def _level_color(self, value: float) -> str:
        return "green" if value >= 0.8 else ("yellow" if value >= 0.6 else "red")

    def generate_report(self, result: DiscoveryResult) -> str:
        """Generate the text report."""
        graph = result.graph
        lines: list[str] = [self._header("CAUSAL STRUCTURE DISCOVERY REPORT")]

        lines.append(self._subheader("Execution Summary"))
        lines.append(f"  Observations:     {result.n_observations:,}")
        lines.append(f"  Nodes:            {len(graph.nodes)}")
        lines.append(f"  Edges:            {len(graph.edges)}")
        lines.append(f"  Search rounds:    {result.iterations}{' (stopped early)' if result.stopped_early else ''}")
        lines.append(f"  Execution time:   {result.execution_time_seconds:.3f}s")
        lines.append(f"  Timestamp:        {result.timestamp}")

        lines.append(self._subheader("Fit"))
        fit_text = self._color(f"{result.fit_score:.1%}", self._level_color(result.fit_score))
        conf_text = self._color(f"{result.overall_confidence:.1%}", self._level_color(result.overall_confidence))
        lines.append(f"  Mean R²:     {self._progress_bar(result.fit_score)} {fit_text}")
        lines.append(f"  Confidence:  {self._progress_bar(result.overall_confidence)} {conf_text}")
        lines.append(f"  BIC:         {result.complexity_penalty:.2f}")

        lines.append(self._subheader("Causal Edges"))
        if graph.edges:
            lines.append(f"  {'Source':<28} {'Target':<28} {'Strength':>9} {'Confidence':>12}")
            lines.append("  " + "-" * 80)
            for edge in sorted(graph.edges.values(), key=lambda e: abs(e.strength), reverse=True):
                sign = "+" if edge.strength >= 0 else ""
                lines.append(
                    f"  {edge.source_id:<28} {edge.target_id:<28} "
                    f"{sign + format(edge.strength, '.4f'):>9} {edge.confidence.value:>12}"
                )
        else:
            lines.append("  No edges discovered.")

        if result.removed_edges:
            lines.append(self._subheader("Removed Edges"))
            lines.extend(f"  ✗ {edge_id}" for edge_id in result.removed_edges)

        if result.low_confidence_edges:
            lines.append(self._subheader("Needs More Data"))
            lines.extend(f"  ⚠ {edge_id}" for edge_id in result.low_confidence_edges)

        lines.append("")
        lines.append("=" * self.HEADER_WIDTH)
        validation = result.validation
        if validation is None or validation.is_valid:
            verdict = self._color("✓ VALID - Acyclic graph respecting temporal order", "green")
        else:
            verdict = self._color(f"✗ NEEDS REVIEW - {len(validation.violations)} violation(s)", "red")
        lines.append(f"  {verdict}")
        if validation is not None:
            lines.extend(f"    └─ {v}" for v in validation.violations)
        lines.append("=" * self.HEADER_WIDTH)

        return "\n".join(lines)

    def print_report(self, result: DiscoveryResult) -> None:
        """Print report to stdout."""
        print(self.generate_report(result))


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def discover_causal_structure(
    observations: ObservationInput,
    config: DiscoveryConfig | None = None,
    print_report: bool = False,
    **overrides: Any,
) -> DiscoveryResult:
    """
    High-level function for one-shot discovery.

    Args:
        observations: Sequence of CausalObservation or a DataFrame
        config: Discovery configuration (defaults when None)
        print_report: Whether to print a text report
        **overrides: Individual DiscoveryConfig fields

    Returns:
        DiscoveryResult with the discovered graph

    Example:
        >>> result = discover_causal_structure(df, use_domain_priors=False)
        >>> [str(e) for e in result.graph.edges.values()]
    """
    engine = CausalDiscoveryEngine(config, **overrides)
    result = engine.discover_structure(observations)

    if print_report:
        DiscoveryReporter().print_report(result)

    return result
