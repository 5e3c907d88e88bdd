"""
Cluster tree module for clustertree.

This module builds the nodes, edges and graph of a cluster tree from
clusterings of the same samples at several resolutions.
"""

from .nodes import get_tree_nodes
from .edges import get_tree_edges
from .graph import filter_tree_edges, assemble_tree_graph, to_networkx
from .cluster_tree import ClusterTree, build_tree_graph

__all__ = [
    'ClusterTree',
    'build_tree_graph',
    'get_tree_nodes',
    'get_tree_edges',
    'filter_tree_edges',
    'assemble_tree_graph',
    'to_networkx',
]
