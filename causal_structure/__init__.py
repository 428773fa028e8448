"""
causal_structure

Hybrid causal structure discovery for personal mental-health / sleep graphs:
PC-style skeleton pruning, GES-style BIC search, DAG repair, validation and
incremental updates over in-memory observations.
"""

from causal_structure.causal_discovery_engine import (
    CausalDiscoveryEngine,
    DiscoveryReporter,
    DiscoveryResult,
    discover_causal_structure,
)
from causal_structure.causal_graph import (
    CausalEdge,
    CausalGraph,
    CausalNode,
    CausalObservation,
    Confidence,
    EdgeType,
    NodeType,
    observations_to_frame,
)
from causal_structure.discovery_config import (
    DiscoveryConfig,
    DomainCatalogue,
    DomainPrior,
    NodeTemplate,
    load_domain_catalogue,
)
from causal_structure.graph_validation import (
    GraphValidationResult,
    ValidationViolation,
    ViolationType,
    ensure_dag,
    validate_graph,
)

__version__ = "1.0.0"

__all__ = [
    "CausalDiscoveryEngine",
    "CausalEdge",
    "CausalGraph",
    "CausalNode",
    "CausalObservation",
    "Confidence",
    "DiscoveryConfig",
    "DiscoveryReporter",
    "DiscoveryResult",
    "DomainCatalogue",
    "DomainPrior",
    "EdgeType",
    "GraphValidationResult",
    "NodeTemplate",
    "NodeType",
    "ValidationViolation",
    "ViolationType",
    "discover_causal_structure",
    "ensure_dag",
    "load_domain_catalogue",
    "observations_to_frame",
    "validate_graph",
]
