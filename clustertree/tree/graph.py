"""
Cluster tree graph assembly.

Filters the edge table and combines it with the node table into a directed
igraph graph.
"""

import igraph
import pandas as pd
from typing import Any, Dict, Optional

from .. import NETWORKX_AVAILABLE

__all__ = [
    'filter_tree_edges',
    'assemble_tree_graph',
    'to_networkx',
]


def filter_tree_edges(
    edges: pd.DataFrame,
    count_filter: float = 0,
    prop_filter: float = 0.1
) -> pd.DataFrame:
    """
    Keep the edges whose count and proportion are both strictly above a threshold.

    Parameters
    ----------
    edges : pd.DataFrame
        Edge table with ``count`` and ``proportion`` columns.
    count_filter : float, default=0
        Edges with ``count <= count_filter`` are removed.
    prop_filter : float, default=0.1
        Edges with ``proportion <= prop_filter`` are removed.

    Returns
    -------
    pd.DataFrame
        The surviving rows, unchanged, in their original order.
    """
    keep = (edges['count'] > count_filter) & (edges['proportion'] > prop_filter)
    return edges.loc[keep].reset_index(drop=True)


def assemble_tree_graph(
    nodes: pd.DataFrame,
    edges: pd.DataFrame,
    graph_attrs: Optional[Dict[str, Any]] = None
) -> igraph.Graph:
    """
    Creates a directed igraph object from a node table and an edge table.

    Parameters
    ----------
    nodes : pd.DataFrame
        Node table. The ``node`` column becomes the vertex ``name``, every
        other column a vertex attribute.
    edges : pd.DataFrame
        Edge table with ``from_node`` and ``to_node`` columns. Every other
        column becomes an edge attribute.
    graph_attrs : dict, optional
        Graph-level attributes.

    Returns
    -------
    igraph.Graph
        Directed graph with one vertex per node row and one edge per edge row.

    Raises
    ------
    RuntimeError
        If an edge references a node id that is not in the node table, which
        means nodes and edges were built from different clusterings.
    """
    ids = nodes['node'].tolist()
    if 'name' in nodes.columns:
        raise ValueError("Node table column 'name' clashes with the vertex ids taken from 'node'")
    if nodes['node'].duplicated().any():
        duplicated = nodes.loc[nodes['node'].duplicated(), 'node'].unique().tolist()
        raise ValueError(f"Node ids must be unique, found duplicates: {duplicated}")
    position = {name: i for i, name in enumerate(ids)}

    dangling = (set(edges['from_node']) | set(edges['to_node'])) - position.keys()
    if dangling:
        raise RuntimeError(f"Edges reference nodes missing from the node table: {sorted(dangling)}")

    edge_list = [(position[u], position[v]) for u, v in zip(edges['from_node'], edges['to_node'])]

    vertex_attrs = {'name': ids}
    for column in nodes.columns:
        if column != 'node':
            vertex_attrs[column] = nodes[column].tolist()

    edge_attrs = {
        column: edges[column].tolist()
        for column in edges.columns
        if column not in ('from_node', 'to_node')
    }

    return igraph.Graph(
        n=len(ids),
        edges=edge_list,
        directed=True,
        graph_attrs=graph_attrs or {},
        vertex_attrs=vertex_attrs,
        edge_attrs=edge_attrs
    )


def to_networkx(graph: igraph.Graph):
    """
    Convert a cluster tree graph to a ``networkx.DiGraph`` keyed by node id.

    Vertex, edge and graph attributes are carried over.
    """
    if not NETWORKX_AVAILABLE:
        raise ImportError("networkx is required for to_networkx. "
                          "Please install with: pip install networkx")
    import networkx as nx

    G = nx.DiGraph(**{key: graph[key] for key in graph.attributes()})
    for vertex in graph.vs:
        attributes = vertex.attributes()
        name = attributes.pop('name')
        G.add_node(name, **attributes)
    names = graph.vs['name'] if graph.vcount() else []
    for edge in graph.es:
        G.add_edge(names[edge.source], names[edge.target], **edge.attributes())

    return G
