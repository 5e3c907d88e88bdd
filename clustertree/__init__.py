"""
ClusterTree: Package for building cluster trees from multiresolution clusterings.

ClusterTree turns clusterings of the same samples at several resolutions into
a directed graph whose nodes are clusters and whose edges show how samples
move between clusters at adjacent resolutions.

Individual modules can be imported directly:
    from clustertree.tree import ClusterTree, build_tree_graph
    from clustertree.tree import get_tree_nodes, get_tree_edges
    from clustertree.aesthetics import Constant, MetadataAggregate
    from clustertree.utils import extract_clusterings, clusterings_from_labels
    import clustertree.scanpy as ctsc
"""

__version__ = "0.0.1"

# Centralized availability checking for all optional dependencies
# These flags are imported throughout the clustertree package

try:
    import networkx
    NETWORKX_AVAILABLE = True
except ImportError:
    NETWORKX_AVAILABLE = False

try:
    import anndata
    ANNDATA_AVAILABLE = True
except ImportError:
    ANNDATA_AVAILABLE = False

from .aesthetics import Constant, MetadataAggregate
from .tree import ClusterTree, build_tree_graph, get_tree_nodes, get_tree_edges

__all__ = [
    'ClusterTree',
    'build_tree_graph',
    'get_tree_nodes',
    'get_tree_edges',
    'Constant',
    'MetadataAggregate',
]
