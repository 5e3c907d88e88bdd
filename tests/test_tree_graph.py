import pandas as pd
import pytest

from clustertree.tree import (
    assemble_tree_graph,
    filter_tree_edges,
    get_tree_edges,
    get_tree_nodes,
    to_networkx,
)


def test_filter_uses_strict_thresholds(split_clusterings):
    edges = get_tree_edges(split_clusterings, "res")

    kept = filter_tree_edges(edges, count_filter=0, prop_filter=0)
    assert set(zip(kept["from_node"], kept["to_node"])) == {
        ("res1C0", "res2C0"),
        ("res1C0", "res2C1"),
        ("res1C1", "res2C1"),
        ("res1C1", "res2C2"),
    }

    # Edges exactly at a threshold are dropped
    assert len(filter_tree_edges(edges, count_filter=1, prop_filter=0)) == 2
    assert len(filter_tree_edges(edges, count_filter=0, prop_filter=0.5)) == 2
    assert filter_tree_edges(edges, count_filter=0, prop_filter=1.0).empty


def test_filter_keeps_values_unchanged(random_clusterings):
    edges = get_tree_edges(random_clusterings, "K")
    kept = filter_tree_edges(edges, count_filter=3, prop_filter=0.05)

    merged = kept.merge(edges, on=["from_node", "to_node"], suffixes=("", "_raw"))
    assert len(merged) == len(kept)
    assert (merged["count"] == merged["count_raw"]).all()
    assert (merged["proportion"] == merged["proportion_raw"]).all()


def test_filter_monotonicity(random_clusterings):
    edges = get_tree_edges(random_clusterings, "K")

    previous = None
    for count_filter, prop_filter in [(0, 0), (1, 0), (1, 0.05), (5, 0.05), (5, 0.2), (20, 0.5)]:
        kept = set(zip(*[filter_tree_edges(edges, count_filter, prop_filter)[c] for c in ("from_node", "to_node")]))
        if previous is not None:
            assert kept <= previous
        previous = kept


def test_assembled_graph_structure(split_clusterings):
    nodes = get_tree_nodes(split_clusterings, "res")
    edges = filter_tree_edges(get_tree_edges(split_clusterings, "res"), 0, 0)

    graph = assemble_tree_graph(nodes, edges, {"prefix": "res"})

    assert graph.is_directed()
    assert graph.vcount() == 5
    assert graph.ecount() == 4
    assert graph.vs["name"] == nodes["node"].tolist()
    assert graph.vs["size"] == [3, 3, 2, 2, 2]
    assert graph.vs["res"] == [1.0, 1.0, 2.0, 2.0, 2.0]
    assert set(graph.es.attributes()) == {"from_clust", "to_clust", "from_res", "to_res", "count", "proportion"}
    assert graph["prefix"] == "res"

    edge = graph.es[graph.get_eid("res1C0", "res2C1")]
    assert edge["count"] == 1
    assert edge["proportion"] == pytest.approx(0.5)


def test_assembly_rejects_dangling_edges(split_clusterings):
    nodes = get_tree_nodes(split_clusterings, "res")
    other = pd.DataFrame({"res1": [0, 0, 0, 1, 1, 7], "res2": [0, 0, 1, 1, 2, 2]})
    edges = filter_tree_edges(get_tree_edges(other, "res"), 0, 0)

    with pytest.raises(RuntimeError, match="res1C7"):
        assemble_tree_graph(nodes, edges)


def test_assembly_rejects_duplicate_node_ids(split_clusterings):
    nodes = get_tree_nodes(split_clusterings, "res")
    nodes = pd.concat([nodes, nodes.iloc[[0]]], ignore_index=True)
    edges = get_tree_edges(split_clusterings, "res")

    with pytest.raises(ValueError, match="unique"):
        assemble_tree_graph(nodes, edges)


def test_assembly_rejects_name_column(split_clusterings):
    nodes = get_tree_nodes(split_clusterings, "res").assign(name="x")
    edges = get_tree_edges(split_clusterings, "res")

    with pytest.raises(ValueError, match="'name'"):
        assemble_tree_graph(nodes, edges)


def test_to_networkx(split_clusterings):
    nx = pytest.importorskip("networkx")

    nodes = get_tree_nodes(split_clusterings, "res")
    edges = filter_tree_edges(get_tree_edges(split_clusterings, "res"), 0, 0)
    G = to_networkx(assemble_tree_graph(nodes, edges, {"prefix": "res"}))

    assert isinstance(G, nx.DiGraph)
    assert set(G.nodes) == set(nodes["node"])
    assert G.nodes["res1C1"]["size"] == 3
    assert G.edges["res1C1", "res2C2"]["count"] == 2
    assert G.graph["prefix"] == "res"
