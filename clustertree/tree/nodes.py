"""
Cluster tree nodes.

One node per (resolution, cluster) pair, carrying the cluster size and
optional metadata aggregated over the cluster's samples.
"""

import warnings
import numpy as np
import pandas as pd
from typing import Any, Dict, Iterable, List, Optional, Union

from joblib import Parallel, delayed
from tqdm import tqdm

from ..aesthetics import MetadataAggregate
from ..utils import check_clusterings, check_metadata, group_samples, node_id

NODE_COLUMNS = ('node', 'name', 'cluster', 'size')


def _check_aggregates(
    aggregates: Optional[Iterable[MetadataAggregate]],
    metadata: pd.DataFrame,
    prefix: str
) -> List[MetadataAggregate]:
    """Drop aggregates of missing columns and keep the last one per column."""
    by_column: Dict[str, MetadataAggregate] = {}
    for aggregate in aggregates or []:
        if not isinstance(aggregate, MetadataAggregate):
            raise TypeError(f"Expected MetadataAggregate, got {type(aggregate).__name__}")
        if aggregate.column not in metadata.columns:
            warnings.warn(f"Metadata column '{aggregate.column}' not found, treating it as a constant")
            continue
        if aggregate.column in NODE_COLUMNS or aggregate.column == prefix:
            raise ValueError(f"Metadata column '{aggregate.column}' clashes with a node table column")
        if aggregate.column in by_column:
            warnings.warn(f"Metadata column '{aggregate.column}' requested more than once, using the last aggregator")
        by_column[aggregate.column] = aggregate
    return list(by_column.values())


def _resolution_nodes(
    labels: np.ndarray,
    resolution: Union[float, str],
    prefix: str,
    metadata: pd.DataFrame,
    aggregates: List[MetadataAggregate]
) -> List[Dict[str, Any]]:
    """Build the node rows of a single resolution."""
    clusters, _, index = group_samples(labels)

    rows = []
    for cluster in clusters:
        members = index[cluster]
        row = {
            'node': node_id(prefix, resolution, cluster),
            prefix: resolution,
            'cluster': cluster,
            'size': len(members),
        }
        for aggregate in aggregates:
            values = metadata[aggregate.column].iloc[members]
            row[aggregate.column] = aggregate.aggregator(values)
        rows.append(row)

    return rows


def get_tree_nodes(
    clusterings: pd.DataFrame,
    prefix: str,
    metadata: Optional[pd.DataFrame] = None,
    aggregates: Optional[Iterable[MetadataAggregate]] = None,
    n_jobs: Optional[int] = 1,
    verbose: bool = False
) -> pd.DataFrame:
    """
    Extract the nodes of a cluster tree from a set of clusterings.

    Parameters
    ----------
    clusterings : pd.DataFrame
        One row per sample and one column per resolution. Column names are
        ``prefix`` followed by the resolution value and their order defines the
        resolution order.
    prefix : str
        Prefix shared by all clustering columns.
    metadata : pd.DataFrame, optional
        One row per sample, aligned with ``clusterings`` by position.
    aggregates : iterable of MetadataAggregate, optional
        Metadata columns to aggregate for every cluster. Aggregates naming a
        column absent from ``metadata`` are skipped with a warning.
    n_jobs : int, optional, default=1
        Number of parallel jobs over resolutions (joblib semantics).
    verbose : bool, default=False
        Whether to show a progress bar over resolutions.

    Returns
    -------
    pd.DataFrame
        One row per node with columns ``node``, ``<prefix>`` (ordered
        categorical resolution), ``cluster``, ``size`` and one column per
        aggregated metadata column.

    Examples
    --------
    >>> clusterings = pd.DataFrame({'K1': [1, 1, 1, 1], 'K2': [1, 1, 2, 2]})
    >>> get_tree_nodes(clusterings, 'K')['node'].tolist()
    ['K1C1', 'K2C1', 'K2C2']
    """
    if prefix in NODE_COLUMNS:
        raise ValueError(f"prefix '{prefix}' clashes with a node table column")

    resolutions = check_clusterings(clusterings, prefix)
    metadata = check_metadata(metadata, clusterings.shape[0])
    aggregates = _check_aggregates(aggregates, metadata, prefix)
    used_metadata = metadata.loc[:, [aggregate.column for aggregate in aggregates]]

    # Results arrive in column order as each job completes
    results = Parallel(n_jobs=n_jobs, return_as="generator")(
        delayed(_resolution_nodes)(
            clusterings[column].to_numpy(), resolution, prefix, used_metadata, aggregates
        )
        for column, resolution in zip(clusterings.columns, resolutions)
    )
    if verbose:
        results = tqdm(results, total=len(resolutions), desc="Tree nodes", unit="resolution")
    per_resolution = list(results)

    columns = ['node', prefix, 'cluster', 'size'] + [aggregate.column for aggregate in aggregates]
    nodes = pd.DataFrame(
        [row for rows in per_resolution for row in rows],
        columns=columns
    )
    nodes[prefix] = pd.Categorical(nodes[prefix], categories=resolutions, ordered=True)

    return nodes
