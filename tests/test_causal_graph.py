from datetime import datetime, timezone

import numpy as np
import pandas as pd
import pytest

from causal_structure import (
    CausalEdge,
    CausalGraph,
    CausalNode,
    CausalObservation,
    Confidence,
    NodeType,
    observations_to_frame,
)


def build_graph(edges: list[tuple[str, str, float]], node_type: NodeType = NodeType.EMOTION) -> CausalGraph:
    graph = CausalGraph(graph_id="test")
    for source, target, _ in edges:
        for node_id in (source, target):
            if node_id not in graph.nodes:
                graph.add_node(CausalNode(node_id, node_id, node_id, node_type))
    for source, target, strength in edges:
        graph.add_edge(CausalEdge(source, target, strength, Confidence.LEARNED))
    return graph


class TestMutation:
    def test_add_edge_updates_both_adjacency_maps(self):
        graph = build_graph([("a", "b", 0.5), ("a", "c", 0.3)])
        assert graph.children("a") == ["b", "c"]
        assert graph.parents("b") == ["a"]
        assert graph.edges["a->b"].conditional_probability == pytest.approx(0.5)

    def test_remove_edge_keeps_adjacency_consistent(self):
        graph = build_graph([("a", "b", 0.5), ("a", "c", 0.3)])
        removed = graph.remove_edge("a->b")
        assert removed.target_id == "b"
        assert "a->b" not in graph.edges
        assert graph.children("a") == ["c"]
        assert graph.parents("b") == []

    def test_unknown_endpoint_is_rejected(self):
        graph = build_graph([("a", "b", 0.5)])
        with pytest.raises(ValueError, match="not found"):
            graph.add_edge(CausalEdge("a", "missing", 0.1, Confidence.LEARNED))

    def test_duplicate_and_self_loop_are_rejected(self):
        graph = build_graph([("a", "b", 0.5)])
        with pytest.raises(ValueError, match="already exists"):
            graph.add_edge(CausalEdge("a", "b", 0.2, Confidence.LEARNED))
        with pytest.raises(ValueError, match="Self-loop"):
            graph.add_edge(CausalEdge("a", "a", 0.2, Confidence.LEARNED))

    def test_removing_missing_edge_raises(self):
        graph = build_graph([("a", "b", 0.5)])
        with pytest.raises(KeyError):
            graph.remove_edge("b->a")

    def test_adjacency_snapshots_are_copies(self):
        graph = build_graph([("a", "b", 0.5)])
        graph.adjacency["a"].append("zzz")
        graph.children("a").append("zzz")
        assert graph.children("a") == ["b"]


class TestQueries:
    def test_reachability_and_cycle_check(self):
        graph = build_graph([("a", "b", 0.5), ("b", "c", 0.5)])
        assert graph.has_path("a", "c")
        assert not graph.has_path("c", "a")
        assert not graph.has_path("a", "c", blocked=["b"])
        assert graph.has_path("a", "c", blocked=["c"])
        assert graph.would_create_cycle("c", "a")
        assert not graph.would_create_cycle("a", "c")

    def test_ancestors_and_descendants(self):
        graph = build_graph([("a", "b", 0.5), ("b", "c", 0.5), ("d", "c", 0.2)])
        assert graph.ancestors("c") == {"a", "b", "d"}
        assert graph.descendants("a") == {"b", "c"}

    def test_find_cycles_reports_back_edges(self):
        graph = build_graph([("a", "b", 0.9), ("b", "c", 0.8), ("c", "a", 0.1)])
        cycles = graph.find_cycles()
        assert cycles == [["a", "b", "c"]]

    def test_find_cycles_on_dag_is_empty(self):
        graph = build_graph([("a", "b", 0.9), ("a", "c", 0.8), ("b", "c", 0.1)])
        assert graph.find_cycles() == []

    def test_find_cycles_handles_long_chains_without_recursion(self):
        names = [f"n{i}" for i in range(3000)]
        graph = build_graph([(names[i], names[i + 1], 0.5) for i in range(len(names) - 1)])
        assert graph.find_cycles() == []
        graph.add_edge(CausalEdge(names[-1], names[0], 0.1, Confidence.LEARNED))
        assert len(graph.find_cycles()[0]) == len(names)

    def test_topological_sort_respects_edges(self):
        graph = build_graph([("c", "d", 0.5), ("a", "b", 0.5), ("b", "c", 0.5)])
        order = graph.topological_sort()
        for edge in graph.edges.values():
            assert order.index(edge.source_id) < order.index(edge.target_id)

    def test_effective_strength_uses_personal_override(self):
        graph = build_graph([("a", "b", 0.5)])
        assert graph.effective_strength("a->b") == 0.5
        graph.personalized_strengths["a->b"] = -0.2
        assert graph.effective_strength("a->b") == -0.2


def test_graph_json_round_trip(tmp_path):
    graph = build_graph([("a", "b", 0.5), ("b", "c", -0.25)])
    graph.personalized_strengths["b->c"] = -0.4
    path = tmp_path / "graph.json"
    graph.save(path)

    loaded = CausalGraph.load(path)
    assert loaded.id == "test"
    assert set(loaded.edges) == {"a->b", "b->c"}
    assert loaded.edges["b->c"].strength == -0.25
    assert loaded.parents("c") == ["b"]
    assert loaded.personalized_strengths == {"b->c": -0.4}
    assert loaded.is_acyclic


class TestObservations:
    def test_observation_variables_are_read_only(self):
        source = {"emotion_anxiety": 0.4}
        obs = CausalObservation(datetime(2026, 1, 1, tzinfo=timezone.utc), source)
        with pytest.raises(TypeError):
            obs.variables["emotion_anxiety"] = 1.0  # type: ignore[index]
        source["emotion_anxiety"] = 0.9
        assert obs.get("emotion_anxiety") == 0.4
        assert obs.get("missing") == 0.0

    def test_frame_fills_missing_values_in_first_seen_order(self):
        ts = datetime(2026, 1, 1, tzinfo=timezone.utc)
        observations = [
            CausalObservation(ts, {"b": 1.0}),
            CausalObservation(ts, {"a": 2.0, "b": 3.0}),
        ]
        frame = observations_to_frame(observations)
        assert list(frame.columns) == ["b", "a"]
        np.testing.assert_array_equal(frame["a"].to_numpy(), [0.0, 2.0])

    def test_frame_accepts_dataframe_with_timestamp_column(self):
        df = pd.DataFrame({
            "timestamp": pd.date_range("2026-01-01", periods=3, tz="UTC"),
            "x": [1, None, 3],
        })
        frame = observations_to_frame(df)
        assert list(frame.columns) == ["x"]
        assert isinstance(frame.index, pd.DatetimeIndex)
        np.testing.assert_array_equal(frame["x"].to_numpy(), [1.0, 0.0, 3.0])
        assert df["x"].isna().sum() == 1

    def test_frame_labels_are_strings(self):
        df = pd.DataFrame(np.ones((4, 2)))
        frame = observations_to_frame(df)
        assert list(frame.columns) == ["0", "1"]
        assert list(df.columns) == [0, 1]
