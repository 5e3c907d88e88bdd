"""
Cluster tree construction for multiresolution clusterings.

This module provides a ClusterTree class that turns clusterings of the same
samples at several resolutions into a directed graph showing how clusters
split and merge from one resolution to the next.
"""

import numbers
import warnings
import igraph
import pandas as pd
from typing import Any, Callable, Dict, Optional, Sequence

from ..aesthetics import Constant, MetadataAggregate, resolve_aesthetics
from ..utils import check_metadata, extract_clusterings
from .nodes import get_tree_nodes
from .edges import get_tree_edges
from .graph import assemble_tree_graph, filter_tree_edges, to_networkx

__all__ = [
    'ClusterTree',
    'build_tree_graph',
]

Aggregator = Optional[Callable[[Sequence[Any]], Any]]


class ClusterTree:
    """
    Cluster tree built from clusterings at multiple resolutions.

    Each node is one cluster at one resolution. Each edge links a cluster at
    one resolution to a cluster at the next one and carries the number of
    samples they share (``count``) and the fraction of the destination
    cluster those samples make up (``proportion``).

    Features:
    - Node sizes and optional metadata aggregated per cluster
    - Full transition table between adjacent resolutions kept in ``edges_``
    - Edge filtering by count and proportion, re-runnable without refitting
    - Result as an igraph graph, convertible to networkx
    """

    def __init__(
        self,
        prefix: str,
        count_filter: float = 0,
        prop_filter: float = 0.1,
        node_colour: Any = None,
        node_colour_aggr: Aggregator = None,
        node_size: Any = None,
        node_size_aggr: Aggregator = None,
        node_alpha: Any = None,
        node_alpha_aggr: Aggregator = None,
        n_jobs: Optional[int] = 1,
        verbose: bool = False
    ):
        """
        Initialize the ClusterTree class.

        Parameters:
        -----------
        prefix : str
            Prefix shared by the clustering column names. The rest of each
            name is the resolution, e.g. ``"leiden_res_"`` for
            ``"leiden_res_0.5"``.

        count_filter : float, default=0
            Edges with a count less than or equal to this value are removed.

        prop_filter : float, default=0.1
            Edges with a proportion less than or equal to this value are removed.

        node_colour, node_size, node_alpha : Any, default=None
            Either the name of a metadata column to aggregate per cluster, a
            literal value applied to all nodes by the renderer, or an explicit
            ``Constant`` / ``MetadataAggregate``. None leaves the aesthetic unset.

        node_colour_aggr, node_size_aggr, node_alpha_aggr : callable, default=None
            Aggregation function for the matching aesthetic when it names a
            metadata column, e.g. ``np.mean``.

        n_jobs : int, optional, default=1
            Number of parallel jobs used by the node and edge builders.

        verbose : bool, default=False
            Whether to show progress bars.

        Examples:
        --------
        >>> import numpy as np
        >>> from clustertree import ClusterTree
        >>>
        >>> tree = ClusterTree(prefix='K', count_filter=0, prop_filter=0,
        ...                    node_colour='age', node_colour_aggr=np.mean)
        >>> tree.fit(clusterings, metadata)
        >>> tree.nodes_.head()
        >>> tree.graph_.summary()
        """
        if not isinstance(prefix, str):
            raise ValueError(f"prefix must be a string, got {type(prefix).__name__}")
        self._check_filters(count_filter, prop_filter)

        self.prefix = prefix
        self.count_filter = count_filter
        self.prop_filter = prop_filter
        self.node_colour = node_colour
        self.node_colour_aggr = node_colour_aggr
        self.node_size = node_size
        self.node_size_aggr = node_size_aggr
        self.node_alpha = node_alpha
        self.node_alpha_aggr = node_alpha_aggr
        self.n_jobs = n_jobs
        self.verbose = verbose

        # Storage for results
        self.nodes_ = None
        self.edges_ = None
        self.filtered_edges_ = None
        self.graph_ = None
        self.aesthetics_ = {}
        self.is_fitted_ = False

    @staticmethod
    def _check_filters(count_filter: float, prop_filter: float):
        if not isinstance(count_filter, numbers.Real) or count_filter < 0:
            raise ValueError(f"count_filter must be a non-negative number, got {count_filter!r}")
        if not isinstance(prop_filter, numbers.Real) or not 0 <= prop_filter <= 1:
            raise ValueError(f"prop_filter must be between 0 and 1, got {prop_filter!r}")

    def get_params(self) -> Dict[str, Any]:
        """Return the constructor parameters."""
        return {
            'prefix': self.prefix,
            'count_filter': self.count_filter,
            'prop_filter': self.prop_filter,
            'node_colour': self.node_colour,
            'node_colour_aggr': self.node_colour_aggr,
            'node_size': self.node_size,
            'node_size_aggr': self.node_size_aggr,
            'node_alpha': self.node_alpha,
            'node_alpha_aggr': self.node_alpha_aggr,
            'n_jobs': self.n_jobs,
            'verbose': self.verbose,
        }

    def _resolve_aesthetics(self, metadata: pd.DataFrame) -> Dict[str, Any]:
        aesthetics = resolve_aesthetics(
            metadata,
            node_colour=self.node_colour,
            node_colour_aggr=self.node_colour_aggr,
            node_size=self.node_size,
            node_size_aggr=self.node_size_aggr,
            node_alpha=self.node_alpha,
            node_alpha_aggr=self.node_alpha_aggr,
        )
        for name, aesthetic in aesthetics.items():
            if isinstance(aesthetic, MetadataAggregate) and aesthetic.column not in metadata.columns:
                warnings.warn(f"Metadata column '{aesthetic.column}' for {name} not found, treating it as a constant")
                aesthetics[name] = Constant(aesthetic.column)
        return aesthetics

    def _graph_attrs(self) -> Dict[str, Any]:
        return {
            'prefix': self.prefix,
            'count_filter': self.count_filter,
            'prop_filter': self.prop_filter,
            'aesthetics': {
                name: aesthetic.value
                for name, aesthetic in self.aesthetics_.items()
                if isinstance(aesthetic, Constant)
            },
            'aggregated': {
                name: aesthetic.column
                for name, aesthetic in self.aesthetics_.items()
                if isinstance(aesthetic, MetadataAggregate)
            },
        }

    def fit(self, clusterings: pd.DataFrame, metadata: Optional[pd.DataFrame] = None) -> 'ClusterTree':
        """
        Build nodes, edges and the filtered graph.

        Parameters:
        -----------
        clusterings : pd.DataFrame
            One row per sample and one column per resolution, in resolution order.

        metadata : pd.DataFrame, optional
            One row per sample, aligned with ``clusterings`` by position.

        Returns:
        --------
        self : ClusterTree
            Fitted cluster tree.
        """
        metadata = check_metadata(metadata, len(clusterings))
        self.aesthetics_ = self._resolve_aesthetics(metadata)

        aggregates = [
            aesthetic for aesthetic in self.aesthetics_.values()
            if isinstance(aesthetic, MetadataAggregate)
        ]

        self.nodes_ = get_tree_nodes(
            clusterings, self.prefix, metadata, aggregates,
            n_jobs=self.n_jobs, verbose=self.verbose
        )
        self.edges_ = get_tree_edges(
            clusterings, self.prefix, n_jobs=self.n_jobs, verbose=self.verbose
        )
        self.is_fitted_ = True
        self._assemble()

        return self

    def _assemble(self):
        self.filtered_edges_ = filter_tree_edges(self.edges_, self.count_filter, self.prop_filter)
        self.graph_ = assemble_tree_graph(self.nodes_, self.filtered_edges_, self._graph_attrs())

    def fit_transform(self, clusterings: pd.DataFrame, metadata: Optional[pd.DataFrame] = None) -> igraph.Graph:
        """Fit the cluster tree and return its graph."""
        return self.fit(clusterings, metadata).graph_

    def refilter(self, count_filter: Optional[float] = None, prop_filter: Optional[float] = None) -> igraph.Graph:
        """
        Re-filter the stored edge table with new thresholds and rebuild the graph.

        Nodes and unfiltered edges are reused, so this is cheap compared to
        :meth:`fit`. Thresholds left as None keep their current value.
        """
        if not self.is_fitted_:
            raise ValueError("Must fit the cluster tree before refiltering")

        count_filter = self.count_filter if count_filter is None else count_filter
        prop_filter = self.prop_filter if prop_filter is None else prop_filter
        self._check_filters(count_filter, prop_filter)

        self.count_filter = count_filter
        self.prop_filter = prop_filter
        self._assemble()

        return self.graph_

    def to_networkx(self):
        """Return the fitted graph as a ``networkx.DiGraph``."""
        if not self.is_fitted_:
            raise ValueError("Must fit the cluster tree before converting it")
        return to_networkx(self.graph_)

    @classmethod
    def from_dataframe(cls, data: pd.DataFrame, prefix: str, sort_resolutions: bool = False, **kwargs) -> 'ClusterTree':
        """
        Fit a cluster tree on a table holding both clusterings and metadata.

        Columns starting with ``prefix`` are clusterings, all others metadata.
        Extra keyword arguments go to the constructor.
        """
        clusterings, metadata = extract_clusterings(data, prefix, sort_resolutions=sort_resolutions)
        return cls(prefix=prefix, **kwargs).fit(clusterings, metadata)


def build_tree_graph(
    clusterings: pd.DataFrame,
    prefix: str,
    count_filter: float = 0,
    prop_filter: float = 0.1,
    metadata: Optional[pd.DataFrame] = None,
    node_colour: Any = None,
    node_colour_aggr: Aggregator = None,
    node_size: Any = None,
    node_size_aggr: Aggregator = None,
    node_alpha: Any = None,
    node_alpha_aggr: Aggregator = None,
    n_jobs: Optional[int] = 1,
    verbose: bool = False
) -> igraph.Graph:
    """
    Build a cluster tree graph from a set of clusterings.

    Functional shortcut for ``ClusterTree(...).fit_transform(clusterings, metadata)``;
    see :class:`ClusterTree` for the parameters.

    Returns
    -------
    igraph.Graph
        Directed graph. Vertices are named by node id and carry the node
        table columns, edges carry ``count``, ``proportion`` and the raw
        resolution/cluster columns.
    """
    tree = ClusterTree(
        prefix=prefix,
        count_filter=count_filter,
        prop_filter=prop_filter,
        node_colour=node_colour,
        node_colour_aggr=node_colour_aggr,
        node_size=node_size,
        node_size_aggr=node_size_aggr,
        node_alpha=node_alpha,
        node_alpha_aggr=node_alpha_aggr,
        n_jobs=n_jobs,
        verbose=verbose
    )
    return tree.fit_transform(clusterings, metadata)
