"""
graph_validation.py

Acyclicity repair and structural diagnostics for causal graphs.

Cycles are repaired, never raised: ``ensure_dag`` deletes the weakest edge of
a detected cycle until none remain. ``validate_graph`` reports cycles,
isolated nodes, out-of-range strengths and temporal-order violations, both
after discovery and for externally supplied graphs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final, Iterable, Mapping

from causal_structure.causal_graph import CausalGraph, NodeType, edge_id_for

logger = logging.getLogger(__name__)


# Causal tiers: triggers → emotions → cognitions → behaviors/physiology.
# A source may not point to a node in a strictly earlier tier.
TEMPORAL_ORDER: Final[Mapping[NodeType, int]] = {
    NodeType.TRIGGER: 0,
    NodeType.INTERVENTION: 0,
    NodeType.EMOTION: 1,
    NodeType.PROTECTIVE: 1,
    NodeType.COGNITION: 2,
    NodeType.BEHAVIOR: 3,
    NodeType.PHYSIOLOGICAL: 3,
}


def violates_temporal_order(source_type: NodeType, target_type: NodeType) -> bool:
    return TEMPORAL_ORDER[source_type] > TEMPORAL_ORDER[target_type]


# =============================================================================
# RESULT TYPES
# =============================================================================

class ViolationType(Enum):
    CYCLE = "cycle"
    TEMPORAL_VIOLATION = "temporal_violation"
    STRENGTH_BOUND = "strength_bound"
    MISSING_NODE = "missing_node"


@dataclass(frozen=True, slots=True)
class ValidationViolation:
    """A single structural problem found in a graph."""
    type: ViolationType
    description: str
    affected_elements: tuple[str, ...]

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.description}"


@dataclass(slots=True)
class GraphValidationResult:
    """Outcome of ``validate_graph``."""
    is_valid: bool
    is_acyclic: bool
    cycles: list[list[str]] = field(default_factory=list)
    isolated_nodes: list[str] = field(default_factory=list)
    missing_required: list[str] = field(default_factory=list)
    violations: list[ValidationViolation] = field(default_factory=list)

    def violations_of(self, violation_type: ViolationType) -> list[ValidationViolation]:
        return [v for v in self.violations if v.type is violation_type]

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "is_acyclic": self.is_acyclic,
            "cycles": [list(c) for c in self.cycles],
            "isolated_nodes": list(self.isolated_nodes),
            "missing_required": list(self.missing_required),
            "violations": [
                {
                    "type": v.type.value,
                    "description": v.description,
                    "affected_elements": list(v.affected_elements),
                }
                for v in self.violations
            ],
        }


# =============================================================================
# DAG ENFORCEMENT
# =============================================================================

def ensure_dag(graph: CausalGraph) -> list[str]:
    """
    Make ``graph`` acyclic in place.

    While a cycle exists, the edge of smallest |strength| on the first cycle
    found is removed. Each pass removes one edge, so the loop terminates.
    The topological order is recomputed afterwards.

    Returns:
        Ids of the removed edges, in removal order
    """
    removed: list[str] = []
    cycles = graph.find_cycles()

    while cycles:
        cycle = cycles[0]
        cycle_edges = [
            graph.edges[edge_id]
            for edge_id in (
                edge_id_for(cycle[i], cycle[(i + 1) % len(cycle)]) for i in range(len(cycle))
            )
            if edge_id in graph.edges
        ]
        established = [e.id for e in cycle_edges if e.is_protected]
        if established:
            logger.warning(
                "Cycle %s contains established edge(s) %s",
                " → ".join(cycle), ", ".join(established),
            )
        weakest = min(cycle_edges, key=lambda e: abs(e.strength))
        graph.remove_edge(weakest.id)
        removed.append(weakest.id)
        logger.debug("Broke cycle %s by removing %s", " → ".join(cycle), weakest)
        cycles = graph.find_cycles()

    graph.is_acyclic = True
    graph.topological_order = graph.topological_sort()

    if removed:
        logger.info("Removed %d edge(s) to restore acyclicity", len(removed))
    return removed


# =============================================================================
# VALIDATION
# =============================================================================

def validate_graph(
    graph: CausalGraph,
    required_edges: Iterable[tuple[str, str]] = (),
) -> GraphValidationResult:
    """
    Diagnose a graph without modifying it.

    Args:
        graph: Graph to check
        required_edges: Optional (source, target) pairs that must be present

    Returns:
        GraphValidationResult; ``is_valid`` means no cycles and no violations
    """
    violations: list[ValidationViolation] = []
    cycles = graph.find_cycles()

    for cycle in cycles:
        violations.append(ValidationViolation(
            type=ViolationType.CYCLE,
            description=f"Cycle {' → '.join(cycle + cycle[:1])}",
            affected_elements=tuple(cycle),
        ))

    isolated = [
        node_id for node_id in graph.nodes
        if not graph.parents(node_id) and not graph.children(node_id)
    ]

    for edge in graph.edges.values():
        if not -1.0 <= edge.strength <= 1.0:
            violations.append(ValidationViolation(
                type=ViolationType.STRENGTH_BOUND,
                description=f"Edge {edge.id} has strength {edge.strength} outside [-1, 1]",
                affected_elements=(edge.id,),
            ))

        source_type = graph.nodes[edge.source_id].type
        target_type = graph.nodes[edge.target_id].type
        if violates_temporal_order(source_type, target_type):
            violations.append(ValidationViolation(
                type=ViolationType.TEMPORAL_VIOLATION,
                description=f"Edge {edge.id}: {source_type.value} cannot cause {target_type.value}",
                affected_elements=(edge.id,),
            ))

    missing_required: list[str] = []
    for source_id, target_id in required_edges:
        edge_id = edge_id_for(source_id, target_id)
        absent_nodes = tuple(n for n in (source_id, target_id) if n not in graph.nodes)
        if absent_nodes:
            violations.append(ValidationViolation(
                type=ViolationType.MISSING_NODE,
                description=f"Required edge {edge_id} references unknown node(s) {', '.join(absent_nodes)}",
                affected_elements=absent_nodes,
            ))
        if edge_id not in graph.edges:
            missing_required.append(edge_id)

    return GraphValidationResult(
        is_valid=not cycles and not violations,
        is_acyclic=not cycles,
        cycles=cycles,
        isolated_nodes=isolated,
        missing_required=missing_required,
        violations=violations,
    )
