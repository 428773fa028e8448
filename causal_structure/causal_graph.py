"""
causal_graph.py

In-memory causal graph model for personal mental-health / sleep DAGs.

This module provides:
- Node, edge and observation types
- CausalGraph with a single mutation path for edges (add_edge / remove_edge)
- Iterative graph algorithms (reachability, cycle detection, Kahn ordering)
- JSON serialization of graphs
- Conversion of observation sequences into a pandas DataFrame
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence, TypeAlias

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


# =============================================================================
# TYPE DEFINITIONS
# =============================================================================

class NodeType(Enum):
    """Domain classification of a causal variable (CBT/DBT model)."""
    TRIGGER = "trigger"               # External events (stress, conflict)
    EMOTION = "emotion"               # Emotional states
    COGNITION = "cognition"           # Thought patterns
    BEHAVIOR = "behavior"             # Observable behaviors
    PHYSIOLOGICAL = "physiological"   # Sleep, energy, appetite
    INTERVENTION = "intervention"     # Delivered interventions
    PROTECTIVE = "protective"         # Social support, coping skills


class EdgeType(Enum):
    """Kind of causal relationship."""
    DIRECT = "direct"
    MEDIATED = "mediated"
    MODERATED = "moderated"
    BIDIRECTIONAL = "bidirectional"
    CONFOUNDED = "confounded"


class Confidence(Enum):
    """Evidence tier behind an edge."""
    ESTABLISHED = "established"     # RCTs, multiple studies; never pruned
    PROBABLE = "probable"           # Observational evidence
    HYPOTHESIZED = "hypothesized"   # Theory only
    LEARNED = "learned"             # Discovered from user data


ObservationInput: TypeAlias = "Sequence[CausalObservation] | pd.DataFrame"


def edge_id_for(source_id: str, target_id: str) -> str:
    """Deterministic edge identifier."""
    return f"{source_id}->{target_id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(slots=True)
class CausalNode:
    """A variable in the causal graph."""
    id: str
    name: str
    name_ru: str
    type: NodeType
    value: float = 0.0
    observed_at: datetime = field(default_factory=_utcnow)
    is_observable: bool = True
    is_manipulable: bool = False
    baseline_value: float = 0.0
    volatility: float = 0.5
    lag_days: float = 1.0
    persistence: float = 0.5
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "name_ru": self.name_ru,
            "type": self.type.value,
            "value": self.value,
            "observed_at": self.observed_at.isoformat(),
            "is_observable": self.is_observable,
            "is_manipulable": self.is_manipulable,
            "baseline_value": self.baseline_value,
            "volatility": self.volatility,
            "lag_days": self.lag_days,
            "persistence": self.persistence,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CausalNode:
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            name_ru=data.get("name_ru", data["id"]),
            type=NodeType(data["type"]),
            value=float(data.get("value", 0.0)),
            observed_at=datetime.fromisoformat(data["observed_at"]) if "observed_at" in data else _utcnow(),
            is_observable=bool(data.get("is_observable", True)),
            is_manipulable=bool(data.get("is_manipulable", False)),
            baseline_value=float(data.get("baseline_value", 0.0)),
            volatility=float(data.get("volatility", 0.5)),
            lag_days=float(data.get("lag_days", 1.0)),
            persistence=float(data.get("persistence", 0.5)),
            metadata=dict(data.get("metadata", {})),
        )


@dataclass(slots=True)
class CausalEdge:
    """A directed causal relationship between two nodes."""
    source_id: str
    target_id: str
    strength: float
    confidence: Confidence
    type: EdgeType = EdgeType.DIRECT
    min_lag_hours: float = 0.0
    max_lag_hours: float = 24.0
    peak_lag_hours: float = 6.0
    evidence_count: int = 0
    last_updated: datetime = field(default_factory=_utcnow)

    @property
    def id(self) -> str:
        return edge_id_for(self.source_id, self.target_id)

    @property
    def conditional_probability(self) -> float:
        """P(effect | cause), approximated by |strength|."""
        return abs(self.strength)

    @property
    def is_protected(self) -> bool:
        """Established edges are reinforced, never removed by testing."""
        return self.confidence is Confidence.ESTABLISHED

    def __str__(self) -> str:
        sign = "+" if self.strength >= 0 else ""
        return f"{self.source_id} → {self.target_id}: β={sign}{self.strength:.3f} ({self.confidence.value})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "type": self.type.value,
            "strength": self.strength,
            "confidence": self.confidence.value,
            "conditional_probability": self.conditional_probability,
            "min_lag_hours": self.min_lag_hours,
            "max_lag_hours": self.max_lag_hours,
            "peak_lag_hours": self.peak_lag_hours,
            "evidence_count": self.evidence_count,
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CausalEdge:
        return cls(
            source_id=data["source_id"],
            target_id=data["target_id"],
            strength=float(data["strength"]),
            confidence=Confidence(data["confidence"]),
            type=EdgeType(data.get("type", EdgeType.DIRECT.value)),
            min_lag_hours=float(data.get("min_lag_hours", 0.0)),
            max_lag_hours=float(data.get("max_lag_hours", 24.0)),
            peak_lag_hours=float(data.get("peak_lag_hours", 6.0)),
            evidence_count=int(data.get("evidence_count", 0)),
            last_updated=datetime.fromisoformat(data["last_updated"]) if "last_updated" in data else _utcnow(),
        )


@dataclass(frozen=True, slots=True)
class CausalObservation:
    """
    One time-stamped measurement of a set of variables.

    The variables mapping is exposed read-only; the engine never mutates
    observation inputs.
    """
    timestamp: datetime
    variables: Mapping[str, float]

    def __post_init__(self) -> None:
        frozen = MappingProxyType({str(k): float(v) for k, v in dict(self.variables).items()})
        object.__setattr__(self, "variables", frozen)

    def get(self, variable_id: str, default: float = 0.0) -> float:
        return self.variables.get(variable_id, default)


# =============================================================================
# OBSERVATION FRAMES
# =============================================================================

def observations_to_frame(observations: ObservationInput) -> pd.DataFrame:
    """
    Convert observations into a numeric DataFrame.

    Rows follow input order, columns follow first-seen variable order and
    missing values are filled with 0. A DataFrame input is returned as a
    float copy with string column labels and any ``timestamp`` column moved
    into the index.

    Args:
        observations: Sequence of CausalObservation or a DataFrame

    Returns:
        DataFrame [n_observations, n_variables]
    """
    if isinstance(observations, pd.DataFrame):
        if _is_clean_frame(observations):
            return observations
        frame = observations.copy()
        if "timestamp" in frame.columns:
            frame = frame.set_index("timestamp")
        frame.columns = frame.columns.map(str)
        return frame.fillna(0.0).astype(np.float64)

    columns: dict[str, None] = {}
    for obs in observations:
        for variable_id in obs.variables:
            columns.setdefault(variable_id, None)

    frame = pd.DataFrame(
        [dict(obs.variables) for obs in observations],
        columns=list(columns),
        index=pd.Index([obs.timestamp for obs in observations], name="timestamp"),
        dtype=np.float64,
    )
    return frame.fillna(0.0)


def _is_clean_frame(frame: pd.DataFrame) -> bool:
    # Already string-labelled, numeric and complete: safe to share read-only
    return (
        "timestamp" not in frame.columns
        and all(isinstance(label, str) for label in frame.columns)
        and all(dtype == np.float64 for dtype in frame.dtypes)
        and not frame.isna().to_numpy().any()
    )


def column(frame: pd.DataFrame, variable_id: str) -> np.ndarray:
    """Values of one variable, zeros when the variable was never observed."""
    if variable_id in frame.columns:
        return frame[variable_id].to_numpy(dtype=np.float64)
    return np.zeros(len(frame), dtype=np.float64)


# =============================================================================
# CAUSAL GRAPH
# =============================================================================

class CausalGraph:
    """
    Directed causal graph with mirrored forward/reverse adjacency.

    The edge map and both adjacency maps are only changed through
    ``add_edge`` and ``remove_edge``, which keep the three in sync.

    Example:
        >>> graph = CausalGraph()
        >>> graph.add_node(CausalNode("trigger_stress", "Stress", "Stress", NodeType.TRIGGER))
        >>> graph.add_node(CausalNode("emotion_anxiety", "Anxiety", "Anxiety", NodeType.EMOTION))
        >>> graph.add_edge(CausalEdge("trigger_stress", "emotion_anxiety", 0.7, Confidence.ESTABLISHED))
        >>> graph.parents("emotion_anxiety")
        ['trigger_stress']
    """

    def __init__(
        self,
        graph_id: str | None = None,
        user_id: int = 0,
        age_group: str = "adult",
        created_at: datetime | None = None,
    ) -> None:
        self.created_at = created_at or _utcnow()
        self.updated_at = self.created_at
        self.id = graph_id or f"graph_{int(self.created_at.timestamp() * 1000)}"
        self.user_id = user_id
        self.age_group = age_group

        self.nodes: dict[str, CausalNode] = {}
        self.edges: dict[str, CausalEdge] = {}
        self._children: dict[str, list[str]] = {}
        self._parents: dict[str, list[str]] = {}

        self.is_acyclic = True
        self.topological_order: list[str] = []
        self.personalized_strengths: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        return f"CausalGraph(id={self.id!r}, nodes={len(self.nodes)}, edges={len(self.edges)})"

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add_node(self, node: CausalNode) -> None:
        if node.id in self.nodes:
            raise ValueError(f"Node '{node.id}' already exists")
        self.nodes[node.id] = node
        self._children[node.id] = []
        self._parents[node.id] = []

    def add_edge(self, edge: CausalEdge) -> CausalEdge:
        """Insert an edge and update both adjacency maps."""
        if edge.source_id not in self.nodes:
            raise ValueError(f"Source node '{edge.source_id}' not found")
        if edge.target_id not in self.nodes:
            raise ValueError(f"Target node '{edge.target_id}' not found")
        if edge.source_id == edge.target_id:
            raise ValueError(f"Self-loop on '{edge.source_id}' is not allowed")
        if edge.id in self.edges:
            raise ValueError(f"Edge '{edge.id}' already exists")

        self.edges[edge.id] = edge
        self._children[edge.source_id].append(edge.target_id)
        self._parents[edge.target_id].append(edge.source_id)
        return edge

    def remove_edge(self, edge_id: str) -> CausalEdge:
        """Delete an edge and its adjacency entries."""
        edge = self.edges.pop(edge_id)
        self._children[edge.source_id].remove(edge.target_id)
        self._parents[edge.target_id].remove(edge.source_id)
        return edge

    def touch(self, when: datetime | None = None) -> None:
        self.updated_at = when or _utcnow()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def has_edge(self, source_id: str, target_id: str) -> bool:
        return edge_id_for(source_id, target_id) in self.edges

    def get_edge(self, source_id: str, target_id: str) -> CausalEdge | None:
        return self.edges.get(edge_id_for(source_id, target_id))

    def children(self, node_id: str) -> list[str]:
        return list(self._children.get(node_id, ()))

    def parents(self, node_id: str) -> list[str]:
        return list(self._parents.get(node_id, ()))

    @property
    def adjacency(self) -> dict[str, list[str]]:
        """Forward adjacency snapshot (node → children)."""
        return {node_id: list(children) for node_id, children in self._children.items()}

    @property
    def reverse_adjacency(self) -> dict[str, list[str]]:
        """Reverse adjacency snapshot (node → parents)."""
        return {node_id: list(parents) for node_id, parents in self._parents.items()}

    def effective_strength(self, edge_id: str) -> float:
        """Edge strength with the per-user override applied, if any."""
        if edge_id in self.personalized_strengths:
            return self.personalized_strengths[edge_id]
        return self.edges[edge_id].strength

    def _reachable(self, start: str) -> Iterable[str]:
        visited: set[str] = set()
        stack = [start]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            yield current
            stack.extend(self._children.get(current, ()))

    def has_path(self, from_id: str, to_id: str, blocked: Iterable[str] = ()) -> bool:
        """Directed path from ``from_id`` to ``to_id`` avoiding ``blocked`` nodes."""
        if from_id == to_id:
            return True
        blocked = set(blocked)
        visited: set[str] = set()
        stack = [from_id]
        while stack:
            current = stack.pop()
            # Reaching the target counts even when it is itself blocked
            if current == to_id:
                return True
            if current in visited or current in blocked:
                continue
            visited.add(current)
            stack.extend(self._children.get(current, ()))
        return False

    def would_create_cycle(self, source_id: str, target_id: str) -> bool:
        """True if adding source→target would close a directed cycle."""
        return any(node == source_id for node in self._reachable(target_id))

    def ancestors(self, node_id: str) -> set[str]:
        result: set[str] = set()
        queue = deque(self._parents.get(node_id, ()))
        while queue:
            parent = queue.popleft()
            if parent not in result:
                result.add(parent)
                queue.extend(self._parents.get(parent, ()))
        return result

    def descendants(self, node_id: str) -> set[str]:
        return set(self._reachable(node_id)) - {node_id}

    def find_cycles(self) -> list[list[str]]:
        """
        Detect cycles with an iterative depth-first search.

        Keeps an explicit recursion stack; every back edge found yields the
        cycle from the revisited node to the current node.

        Returns:
            List of cycles as node-id paths (empty list ⇒ acyclic)
        """
        cycles: list[list[str]] = []
        visited: set[str] = set()

        for root in self.nodes:
            if root in visited:
                continue
            visited.add(root)
            path = [root]
            on_path = {root}
            stack = [iter(self.children(root))]

            while stack:
                child = next(stack[-1], None)
                if child is None:
                    stack.pop()
                    on_path.discard(path.pop())
                    continue
                if child in on_path:
                    cycles.append(path[path.index(child):])
                elif child not in visited:
                    visited.add(child)
                    path.append(child)
                    on_path.add(child)
                    stack.append(iter(self.children(child)))

        return cycles

    def topological_sort(self) -> list[str]:
        """Kahn's algorithm; nodes on cycles are left out."""
        in_degree = {node_id: len(self._parents[node_id]) for node_id in self.nodes}
        queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
        order: list[str] = []

        while queue:
            current = queue.popleft()
            order.append(current)
            for child in self._children[current]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    queue.append(child)

        return order

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "age_group": self.age_group,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "is_acyclic": self.is_acyclic,
            "topological_order": list(self.topological_order),
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "edges": [edge.to_dict() for edge in self.edges.values()],
            "personalized_strengths": dict(self.personalized_strengths),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CausalGraph:
        """Rebuild a graph; edges go through ``add_edge`` so adjacency is derived."""
        graph = cls(
            graph_id=data.get("id"),
            user_id=int(data.get("user_id", 0)),
            age_group=data.get("age_group", "adult"),
            created_at=datetime.fromisoformat(data["created_at"]) if "created_at" in data else None,
        )
        for node_data in data.get("nodes", []):
            graph.add_node(CausalNode.from_dict(node_data))
        for edge_data in data.get("edges", []):
            graph.add_edge(CausalEdge.from_dict(edge_data))
        if "updated_at" in data:
            graph.updated_at = datetime.fromisoformat(data["updated_at"])
        graph.personalized_strengths = {
            k: float(v) for k, v in data.get("personalized_strengths", {}).items()
        }
        graph.is_acyclic = not graph.find_cycles()
        graph.topological_order = graph.topological_sort()
        return graph

    def save(self, path: str | Path) -> None:
        """Save graph to JSON file."""
        path = Path(path)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: str | Path) -> CausalGraph:
        with Path(path).open("r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))
