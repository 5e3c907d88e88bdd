"""
Scanpy-style cluster tree function for clustertree.

This module builds a cluster tree from multiresolution clusterings stored in
``adata.obs`` and stores the result in ``adata.uns`` following scanpy
conventions.
"""

import numpy as np
import pandas as pd
from typing import Any, Callable, Optional, Sequence

from ... import ANNDATA_AVAILABLE
from ...tree import ClusterTree
from ...utils import extract_clusterings

if ANNDATA_AVAILABLE:
    import anndata as ad


def _as_labels(labels: pd.Series) -> pd.Series:
    """
    Convert string labels that all look like integers to integers so they sort numerically.

    Labels with leading zeros (``"01"``) are left as strings so distinct labels
    never collapse onto the same integer.
    """
    if isinstance(labels.dtype, pd.CategoricalDtype) or pd.api.types.is_string_dtype(labels):
        as_str = labels.astype(str)
        if as_str.str.fullmatch(r'(0|-?[1-9]\d*)').all():
            return as_str.astype(np.int64)
        return labels.astype(object)
    return labels


def cluster_tree(
    adata: 'ad.AnnData',
    prefix: str,
    *,
    count_filter: float = 0,
    prop_filter: float = 0.1,
    node_colour: Any = None,
    node_colour_aggr: Optional[Callable[[Sequence[Any]], Any]] = None,
    node_size: Any = None,
    node_size_aggr: Optional[Callable[[Sequence[Any]], Any]] = None,
    node_alpha: Any = None,
    node_alpha_aggr: Optional[Callable[[Sequence[Any]], Any]] = None,
    sort_resolutions: bool = False,
    n_jobs: Optional[int] = 1,
    verbose: bool = False,
    key_added: str = 'cluster_tree',
    copy: bool = False
) -> Optional['ad.AnnData']:
    """
    Build a cluster tree from clusterings stored in ``adata.obs``.

    Parameters
    ----------
    adata : AnnData
        Annotated data object. Columns of ``adata.obs`` starting with
        ``prefix`` are clusterings (e.g. written by ``multiresolution_leiden``),
        all other columns are metadata.

    prefix : str
        Prefix of the clustering columns, e.g. ``'multiresolution_leiden_'``.

    count_filter : float, default=0
        Edges with a count less than or equal to this value are removed.

    prop_filter : float, default=0.1
        Edges with a proportion less than or equal to this value are removed.

    node_colour, node_size, node_alpha : Any, default=None
        Name of an ``adata.obs`` column to aggregate per cluster or a
        constant value. See :class:`clustertree.tree.ClusterTree`.

    node_colour_aggr, node_size_aggr, node_alpha_aggr : callable, default=None
        Aggregation functions for column-valued aesthetics.

    sort_resolutions : bool, default=False
        Whether to order clustering columns by resolution value instead of
        their order in ``adata.obs``.

    n_jobs : int, optional, default=1
        Number of parallel jobs.

    verbose : bool, default=False
        Whether to show progress bars.

    key_added : str, default='cluster_tree'
        Key under which the result is stored in ``adata.uns``.

    copy : bool, default=False
        Whether to return a copy of adata or modify in place.

    Returns
    -------
    adata : AnnData or None
        If copy=True, returns the AnnData object with the cluster tree stored.
        If copy=False, modifies adata in place and returns None.

        Adds ``adata.uns[key_added]`` with keys ``'nodes'`` (node table),
        ``'edges'`` (unfiltered edge table), ``'graph'`` (filtered
        ``igraph.Graph``) and ``'params'``.

    Examples
    --------
    >>> import clustertree.scanpy as ctsc
    >>> ctsc.tl.cluster_tree(adata, prefix='multiresolution_leiden_', sort_resolutions=True)
    >>> adata.uns['cluster_tree']['graph'].summary()
    """
    if not ANNDATA_AVAILABLE:
        raise ImportError("anndata is required for Scanpy wrappers. Install with: pip install anndata")
    if not isinstance(adata, ad.AnnData):
        raise ValueError(f"adata must be an AnnData object, got {type(adata).__name__}")

    adata = adata.copy() if copy else adata

    clusterings, metadata = extract_clusterings(adata.obs, prefix, sort_resolutions=sort_resolutions)
    clusterings = pd.DataFrame(
        {column: _as_labels(clusterings[column]) for column in clusterings.columns},
        index=clusterings.index
    )

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
    ).fit(clusterings, metadata)

    adata.uns[key_added] = {
        'nodes': tree.nodes_,
        'edges': tree.edges_,
        'graph': tree.graph_,
        'params': {
            'prefix': prefix,
            'resolution_columns': list(clusterings.columns),
            'count_filter': count_filter,
            'prop_filter': prop_filter,
            'aesthetics': tree.graph_['aesthetics'],
            'aggregated': tree.graph_['aggregated'],
            'method': 'cluster_tree'
        }
    }

    return adata if copy else None
