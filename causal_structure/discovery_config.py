"""
discovery_config.py

Configuration for causal structure discovery.

This module provides:
- DiscoveryConfig: tunable parameters of the hybrid PC/GES pipeline
- DomainPrior / NodeTemplate: expert knowledge records
- DomainCatalogue: loader for the JSON prior catalogue shipped with the package

Expert priors are data, not code: the default catalogue lives in
``data/domain_catalogue.json`` and any other catalogue with the same shape can
be loaded with ``load_domain_catalogue(path)``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Final, Mapping

from causal_structure.causal_graph import Confidence, EdgeType, NodeType

logger = logging.getLogger(__name__)

DEFAULT_CATALOGUE_PATH: Final[Path] = Path(__file__).with_name("data") / "domain_catalogue.json"


# =============================================================================
# DOMAIN KNOWLEDGE RECORDS
# =============================================================================

@dataclass(frozen=True, slots=True)
class DomainPrior:
    """An expert-supplied candidate edge seeded before statistical search."""
    source_id: str
    target_id: str
    strength: float = 0.5
    confidence: Confidence = Confidence.HYPOTHESIZED
    type: EdgeType = EdgeType.DIRECT
    min_lag_hours: float = 0.0
    max_lag_hours: float = 24.0
    peak_lag_hours: float = 6.0

    def __post_init__(self) -> None:
        if not self.source_id or not self.target_id:
            raise ValueError("Domain prior source_id and target_id cannot be empty")
        if self.source_id == self.target_id:
            raise ValueError(f"Domain prior on '{self.source_id}' would be a self-loop")
        if not -1.0 <= self.strength <= 1.0:
            raise ValueError(
                f"Prior {self.source_id}->{self.target_id} has strength "
                f"{self.strength} outside [-1, 1]"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DomainPrior:
        return cls(
            source_id=data["source_id"],
            target_id=data["target_id"],
            strength=float(data.get("strength", 0.5)),
            confidence=Confidence(data.get("confidence", Confidence.HYPOTHESIZED.value)),
            type=EdgeType(data.get("type", EdgeType.DIRECT.value)),
            min_lag_hours=float(data.get("min_lag_hours", 0.0)),
            max_lag_hours=float(data.get("max_lag_hours", 24.0)),
            peak_lag_hours=float(data.get("peak_lag_hours", 6.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "strength": self.strength,
            "confidence": self.confidence.value,
            "type": self.type.value,
            "min_lag_hours": self.min_lag_hours,
            "max_lag_hours": self.max_lag_hours,
            "peak_lag_hours": self.peak_lag_hours,
        }


@dataclass(frozen=True, slots=True)
class NodeTemplate:
    """Display names, type and flags for a known variable id."""
    id: str
    name: str
    name_ru: str
    type: NodeType
    is_observable: bool = True
    is_manipulable: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NodeTemplate:
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            name_ru=data.get("name_ru", data.get("name", data["id"])),
            type=NodeType(data["type"]),
            is_observable=bool(data.get("is_observable", True)),
            is_manipulable=bool(data.get("is_manipulable", False)),
        )


@dataclass(frozen=True, slots=True)
class DomainCatalogue:
    """Node templates plus expert priors."""
    node_templates: tuple[NodeTemplate, ...]
    domain_priors: tuple[DomainPrior, ...]

    def template(self, node_id: str) -> NodeTemplate | None:
        for template in self.node_templates:
            if template.id == node_id:
                return template
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DomainCatalogue:
        return cls(
            node_templates=tuple(NodeTemplate.from_dict(t) for t in data.get("node_templates", [])),
            domain_priors=tuple(DomainPrior.from_dict(p) for p in data.get("domain_priors", [])),
        )


def load_domain_catalogue(path: str | Path | None = None) -> DomainCatalogue:
    """
    Load a domain catalogue from JSON.

    Args:
        path: Catalogue file; the packaged mental-health catalogue when None

    Returns:
        Parsed DomainCatalogue
    """
    if path is None:
        return _default_catalogue()
    return _read_catalogue(Path(path))


@lru_cache(maxsize=1)
def _default_catalogue() -> DomainCatalogue:
    return _read_catalogue(DEFAULT_CATALOGUE_PATH)


def _read_catalogue(path: Path) -> DomainCatalogue:
    with path.open("r", encoding="utf-8") as f:
        catalogue = DomainCatalogue.from_dict(json.load(f))
    logger.debug(
        "Loaded domain catalogue %s: %d templates, %d priors",
        path, len(catalogue.node_templates), len(catalogue.domain_priors),
    )
    return catalogue


# =============================================================================
# DISCOVERY CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class DiscoveryConfig:
    """
    Parameters of one discovery run.

    Attributes:
        significance_level: Alpha for conditional-independence tests.
        min_observations: Evidence count below which an edge is low-confidence.
        max_parents: Upper bound on parents the score phase may grow a node to.
        use_domain_priors: Seed the graph with expert priors.
        domain_priors: Priors to seed; the packaged catalogue when empty.
        forbidden_edges: (source, target) pairs that may never be added.
        required_edges: (source, target) pairs seeded as established edges.
        respect_temporal_order: Reject edges pointing to an earlier node tier.
        max_conditioning_size: Largest conditioning set in the constraint phase.
        correlation_threshold: Minimum |r| for a score-phase candidate.
        bic_improvement_threshold: BIC decrease needed to accept an edge.
        max_iterations: Round cap of the score phase.
        time_budget_seconds: Wall-clock budget of the score phase (None = unbounded).
        baseline_smoothing: EMA factor for incremental baseline updates.
        default_node_type: Type of variables with no template or known prefix.
    """
    significance_level: float = 0.05
    min_observations: int = 30
    max_parents: int = 5
    use_domain_priors: bool = True
    domain_priors: tuple[DomainPrior, ...] = ()
    forbidden_edges: frozenset[tuple[str, str]] = frozenset()
    required_edges: tuple[tuple[str, str], ...] = ()
    respect_temporal_order: bool = True
    max_conditioning_size: int = 3
    correlation_threshold: float = 0.2
    bic_improvement_threshold: float = 2.0
    max_iterations: int = 100
    time_budget_seconds: float | None = None
    baseline_smoothing: float = 0.1
    default_node_type: NodeType = NodeType.EMOTION
    catalogue: DomainCatalogue = field(default_factory=load_domain_catalogue, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Normalize loosely typed inputs (lists of lists from JSON, dicts for priors)
        object.__setattr__(self, "forbidden_edges", frozenset(tuple(pair) for pair in self.forbidden_edges))
        object.__setattr__(self, "required_edges", tuple(tuple(pair) for pair in self.required_edges))
        object.__setattr__(
            self,
            "domain_priors",
            tuple(p if isinstance(p, DomainPrior) else DomainPrior.from_dict(p) for p in self.domain_priors),
        )
        if isinstance(self.default_node_type, str):
            object.__setattr__(self, "default_node_type", NodeType(self.default_node_type))

        if not 0.0 < self.significance_level < 1.0:
            raise ValueError(f"significance_level must be in (0, 1), got {self.significance_level}")
        if self.max_parents < 1:
            raise ValueError(f"max_parents must be >= 1, got {self.max_parents}")
        if self.max_conditioning_size < 0:
            raise ValueError(f"max_conditioning_size must be >= 0, got {self.max_conditioning_size}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if not 0.0 < self.baseline_smoothing <= 1.0:
            raise ValueError(f"baseline_smoothing must be in (0, 1], got {self.baseline_smoothing}")
        if self.time_budget_seconds is not None and self.time_budget_seconds <= 0:
            raise ValueError(f"time_budget_seconds must be positive, got {self.time_budget_seconds}")
        for pair in (*self.forbidden_edges, *self.required_edges):
            if len(pair) != 2:
                raise ValueError(f"Edge constraints must be (source, target) pairs, got {pair!r}")

    @property
    def effective_priors(self) -> tuple[DomainPrior, ...]:
        """Priors seeded at initialization, honoring ``use_domain_priors``."""
        if not self.use_domain_priors:
            return ()
        return self.domain_priors or self.catalogue.domain_priors

    def is_forbidden(self, source_id: str, target_id: str) -> bool:
        return (source_id, target_id) in self.forbidden_edges

    def merged(self, **overrides: Any) -> DiscoveryConfig:
        """Copy with the given fields replaced."""
        unknown = set(overrides) - {f.name for f in fields(self)}
        if unknown:
            raise ValueError(f"Unknown discovery config fields: {', '.join(sorted(unknown))}")
        return replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (catalogue excluded)."""
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "catalogue"}
        data["domain_priors"] = [p.to_dict() for p in self.domain_priors]
        data["forbidden_edges"] = sorted(list(pair) for pair in self.forbidden_edges)
        data["required_edges"] = [list(pair) for pair in self.required_edges]
        data["default_node_type"] = self.default_node_type.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DiscoveryConfig:
        """
        Build a config from a plain mapping.

        An optional ``catalogue_path`` key points at a custom domain catalogue.
        """
        data = dict(data)
        catalogue_path = data.pop("catalogue_path", None)
        known = {f.name for f in fields(cls)} - {"catalogue"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown discovery config fields: {', '.join(sorted(unknown))}")
        if catalogue_path is not None:
            data["catalogue"] = load_domain_catalogue(catalogue_path)
        return cls(**data)

    @classmethod
    def from_file(cls, path: str | Path) -> DiscoveryConfig:
        """Load config from a JSON file."""
        with Path(path).open("r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))
