import warnings
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

def parse_resolution(column: str, prefix: str) -> Union[float, str]:
    """
    Extracts the resolution value encoded in a clustering column name.

    Parameters:
    ----------
    column : str
        Column name, e.g. ``"res.0.50"``.
    prefix : str
        Prefix shared by all clustering columns, e.g. ``"res."``.

    Returns:
    -------
    Union[float, str]
        The suffix parsed as a number, or the raw suffix if it is not numeric.
    """

    column = str(column)
    if not column.startswith(prefix):
        raise ValueError(f"Column '{column}' does not start with prefix '{prefix}'")

    suffix = column[len(prefix):]
    try:
        return float(suffix)
    except ValueError:
        return suffix

def format_resolution(resolution: Union[float, int, str]) -> str:
    """
    Formats a resolution value for use inside node ids (``1.0 -> "1"``, ``0.50 -> "0.5"``).
    """

    if isinstance(resolution, str):
        return resolution
    return "%.15g" % resolution

def node_id(prefix: str, resolution: Union[float, int, str], cluster: Any) -> str:
    """
    Builds the string id of the node for ``cluster`` at ``resolution``.

    Parameters:
    ----------
    prefix : str
        Prefix shared by all clustering columns.
    resolution : Union[float, int, str]
        Resolution value as returned by :func:`parse_resolution`.
    cluster : Any
        Cluster label.

    Returns:
    -------
    str
        Node id of the form ``"<prefix><resolution>C<cluster>"``.
    """

    return f"{prefix}{format_resolution(resolution)}C{cluster}"

def group_samples(labels: Union[np.ndarray, pd.Series, List[Any]]) -> Tuple[List[Any], np.ndarray, Dict[Any, np.ndarray]]:
    """
    Groups sample indices by cluster label.

    Parameters:
    ----------
    labels : Union[np.ndarray, pd.Series, List[Any]]
        Cluster label of every sample at one resolution.

    Returns:
    -------
    Tuple[List[Any], np.ndarray, Dict[Any, np.ndarray]]
        Sorted distinct labels, the position of each sample's label in that
        list, and a mapping from label to the sorted indices of its samples.
    """

    labels = np.asarray(labels)
    if labels.size == 0:
        raise ValueError("Cannot group an empty set of cluster labels")
    if pd.isna(labels).any():
        raise ValueError("Cluster labels must not contain missing values")

    clusters, codes = np.unique(labels, return_inverse=True)
    codes = codes.reshape(-1)
    order = np.argsort(codes, kind="stable")
    bounds = np.cumsum(np.bincount(codes, minlength=len(clusters)))[:-1]
    clusters = clusters.tolist()
    index = dict(zip(clusters, np.split(order, bounds)))

    return clusters, codes, index

def check_clusterings(clusterings: pd.DataFrame, prefix: str) -> List[Union[float, str]]:
    """
    Validates a clustering matrix and returns the resolution of each column.

    Parameters:
    ----------
    clusterings : pd.DataFrame
        One row per sample, one column per resolution.
    prefix : str
        Prefix shared by all clustering columns.

    Returns:
    -------
    List[Union[float, str]]
        Resolution values in column order.
    """

    if not isinstance(clusterings, pd.DataFrame):
        raise ValueError(f"clusterings must be a pandas DataFrame, got {type(clusterings).__name__}")
    if clusterings.shape[1] == 0:
        raise ValueError("clusterings must contain at least one resolution column")
    if clusterings.shape[0] == 0:
        raise ValueError("clusterings must contain at least one sample")

    resolutions = [parse_resolution(column, prefix) for column in clusterings.columns]
    formatted = [format_resolution(res) for res in resolutions]
    if len(set(formatted)) != len(formatted):
        duplicated = sorted({res for res in formatted if formatted.count(res) > 1})
        raise ValueError(f"Resolution columns map to duplicated resolutions: {duplicated}")

    for column in clusterings.columns:
        if clusterings[column].isna().any():
            raise ValueError(f"Column '{column}' contains missing cluster labels")

    return resolutions

def check_metadata(metadata: Optional[pd.DataFrame], n_samples: int) -> pd.DataFrame:
    """
    Validates the metadata table against the number of samples.

    ``None`` is accepted and replaced with an empty table of the right length.
    """

    if metadata is None:
        return pd.DataFrame(index=pd.RangeIndex(n_samples))
    if not isinstance(metadata, pd.DataFrame):
        raise ValueError(f"metadata must be a pandas DataFrame, got {type(metadata).__name__}")
    if metadata.shape[0] != n_samples:
        raise ValueError(f"metadata has {metadata.shape[0]} rows but clusterings has {n_samples} samples")

    return metadata

def extract_clusterings(data: pd.DataFrame, prefix: str, sort_resolutions: bool = False) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Splits a wide table into a clustering matrix and a metadata table.

    Parameters:
    ----------
    data : pd.DataFrame
        One row per sample. Columns starting with ``prefix`` hold clusterings,
        every other column is metadata.
    prefix : str
        Prefix shared by all clustering columns.
    sort_resolutions : bool, default=False
        Whether to order clustering columns by resolution value instead of
        keeping their order in ``data``.

    Returns:
    -------
    Tuple[pd.DataFrame, pd.DataFrame]
        The clustering matrix and the metadata table.

    Examples:
    --------
    >>> data = pd.DataFrame({"K1": [1, 1, 1], "K2": [1, 2, 2], "age": [3, 5, 7]})
    >>> clusterings, metadata = extract_clusterings(data, "K")
    >>> list(clusterings.columns), list(metadata.columns)
    (['K1', 'K2'], ['age'])
    """

    columns = [column for column in data.columns if str(column).startswith(prefix)]
    if not columns:
        raise ValueError(f"No columns found with prefix '{prefix}' in the DataFrame.")

    if sort_resolutions:
        resolutions = [parse_resolution(column, prefix) for column in columns]
        if any(isinstance(res, str) for res in resolutions):
            raise ValueError("Cannot sort resolutions with non-numeric column suffixes")
        columns = [column for _, column in sorted(zip(resolutions, columns), key=lambda pair: pair[0])]

    clusterings = data.loc[:, columns]
    metadata = data.drop(columns=columns)

    return clusterings, metadata

def clusterings_from_labels(
    labels_dict: Mapping[Any, Optional[Union[np.ndarray, List[Any]]]],
    prefix: str,
    resolutions: Optional[Mapping[Any, Union[float, int]]] = None
) -> pd.DataFrame:
    """
    Builds a clustering matrix from a dictionary of label arrays.

    Parameters:
    ----------
    labels_dict : Mapping
        Maps resolution indices to cluster label arrays, e.g.
        ``{0: array([0, 0, 1]), 1: array([0, 1, 2])}``. ``None`` entries are
        skipped with a warning.
    prefix : str
        Prefix for the generated column names.
    resolutions : Mapping, optional
        Maps resolution indices to the resolution value used in column names.
        If None, the indices themselves are used.

    Returns:
    -------
    pd.DataFrame
        Clustering matrix with columns ordered by resolution index.
    """

    columns = {}
    for key in sorted(labels_dict.keys()):
        labels = labels_dict[key]
        if labels is None:
            warnings.warn(f"No labels found for resolution index {key}, skipping")
            continue
        value = resolutions[key] if resolutions is not None else key
        columns[f"{prefix}{format_resolution(value)}"] = np.asarray(labels)

    if not columns:
        raise ValueError("No valid labels found in labels_dict")

    return pd.DataFrame(columns)
