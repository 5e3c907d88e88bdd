"""
Cluster tree edges.

Transitions between every pair of adjacent resolutions, for the full
cross-product of their clusters.
"""

import numpy as np
import pandas as pd
from scipy import sparse
from typing import List, Optional, Union

from joblib import Parallel, delayed
from tqdm import tqdm

from ..utils import check_clusterings, group_samples, node_id

EDGE_COLUMNS = [
    'from_node', 'to_node', 'from_clust', 'to_clust',
    'from_res', 'to_res', 'count', 'proportion'
]


def _empty_edges() -> pd.DataFrame:
    edges = pd.DataFrame(columns=EDGE_COLUMNS)
    return edges.astype({'count': np.int64, 'proportion': np.float64})


def _pair_edges(
    from_labels: np.ndarray,
    to_labels: np.ndarray,
    from_res: Union[float, str],
    to_res: Union[float, str],
    prefix: str
) -> pd.DataFrame:
    """
    Count the transitions between two adjacent resolutions.

    Rows follow the cross-product order with the from-cluster varying
    fastest. The proportion is relative to the size of the to-cluster.
    """
    from_clusters, from_codes, _ = group_samples(from_labels)
    to_clusters, to_codes, _ = group_samples(to_labels)
    n_from, n_to = len(from_clusters), len(to_clusters)

    # Contingency table, duplicates are summed on conversion
    contingency = sparse.coo_matrix(
        (np.ones(len(from_codes), dtype=np.int64), (from_codes, to_codes)),
        shape=(n_from, n_to)
    ).toarray()
    to_size = np.bincount(to_codes, minlength=n_to)

    from_idx = np.tile(np.arange(n_from), n_to)
    to_idx = np.repeat(np.arange(n_to), n_from)
    count = contingency.ravel(order='F')

    from_clust = [from_clusters[i] for i in from_idx]
    to_clust = [to_clusters[j] for j in to_idx]

    return pd.DataFrame({
        'from_node': [node_id(prefix, from_res, c) for c in from_clust],
        'to_node': [node_id(prefix, to_res, c) for c in to_clust],
        'from_clust': from_clust,
        'to_clust': to_clust,
        'from_res': [from_res] * len(count),
        'to_res': [to_res] * len(count),
        'count': count.astype(np.int64),
        'proportion': count / to_size[to_idx],
    }, columns=EDGE_COLUMNS)


def get_tree_edges(
    clusterings: pd.DataFrame,
    prefix: str,
    n_jobs: Optional[int] = 1,
    verbose: bool = False
) -> pd.DataFrame:
    """
    Extract the unfiltered edges of a cluster tree from a set of clusterings.

    For each pair of adjacent clustering columns every combination of a
    cluster in the first column with a cluster in the second becomes an edge,
    including combinations that share no samples.

    Parameters
    ----------
    clusterings : pd.DataFrame
        One row per sample and one column per resolution, in resolution order.
    prefix : str
        Prefix shared by all clustering columns.
    n_jobs : int, optional, default=1
        Number of parallel jobs over resolution pairs (joblib semantics).
    verbose : bool, default=False
        Whether to show a progress bar over resolution pairs.

    Returns
    -------
    pd.DataFrame
        Columns ``from_node``, ``to_node``, ``from_clust``, ``to_clust``,
        ``from_res``, ``to_res``, ``count`` (samples shared by both clusters)
        and ``proportion`` (``count`` divided by the size of the to-cluster).
        Rows of earlier resolution pairs come first.

    Examples
    --------
    >>> clusterings = pd.DataFrame({'K1': [1, 1, 2, 2], 'K2': [1, 2, 2, 2]})
    >>> get_tree_edges(clusterings, 'K')[['from_node', 'to_node', 'count']].values.tolist()
    [['K1C1', 'K2C1', 1], ['K1C2', 'K2C1', 0], ['K1C1', 'K2C2', 1], ['K1C2', 'K2C2', 2]]
    """
    resolutions = check_clusterings(clusterings, prefix)
    columns = list(clusterings.columns)

    n_pairs = len(columns) - 1
    results = Parallel(n_jobs=n_jobs, return_as="generator")(
        delayed(_pair_edges)(
            clusterings[columns[i]].to_numpy(),
            clusterings[columns[i + 1]].to_numpy(),
            resolutions[i],
            resolutions[i + 1],
            prefix
        )
        for i in range(n_pairs)
    )
    if verbose:
        results = tqdm(results, total=n_pairs, desc="Tree edges", unit="pair")
    per_pair: List[pd.DataFrame] = list(results)

    if not per_pair:
        return _empty_edges()

    return pd.concat(per_pair, ignore_index=True)
