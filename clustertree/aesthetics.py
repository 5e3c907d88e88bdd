"""
Node aesthetics for cluster trees.

A node aesthetic (colour, size or alpha) is either a constant shared by every
node, applied by the renderer, or a metadata column aggregated over the
samples of each cluster.
"""

import pandas as pd
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Union

__all__ = [
    'Constant',
    'MetadataAggregate',
    'resolve_aesthetic',
    'resolve_aesthetics',
]


@dataclass(frozen=True)
class Constant:
    """A value applied uniformly to every node."""

    value: Any


@dataclass(frozen=True)
class MetadataAggregate:
    """
    A metadata column reduced to one value per cluster.

    Parameters
    ----------
    column : str
        Name of the metadata column.
    aggregator : callable
        Function mapping the column values of a cluster's samples to a scalar,
        e.g. ``np.mean``.
    """

    column: str
    aggregator: Callable[[Sequence[Any]], Any]


Aesthetic = Union[Constant, MetadataAggregate]


def resolve_aesthetic(
    value: Any,
    aggregator: Optional[Callable[[Sequence[Any]], Any]] = None,
    metadata: Optional[pd.DataFrame] = None
) -> Aesthetic:
    """
    Turn a "column name or literal" argument into an aesthetic.

    Parameters
    ----------
    value : Any
        A :class:`Constant`, a :class:`MetadataAggregate`, the name of a
        metadata column, or a literal value.
    aggregator : callable, optional
        Aggregation function, required when ``value`` names a metadata column.
    metadata : pd.DataFrame, optional
        Metadata table used to recognise column names.

    Returns
    -------
    Constant or MetadataAggregate
    """
    if isinstance(value, (Constant, MetadataAggregate)):
        return value

    if metadata is not None and isinstance(value, str) and value in metadata.columns:
        if aggregator is None:
            raise ValueError(f"An aggregation function is required to use metadata column '{value}'")
        return MetadataAggregate(value, aggregator)

    return Constant(value)


def resolve_aesthetics(
    metadata: Optional[pd.DataFrame] = None,
    **aesthetics: Any
) -> Dict[str, Aesthetic]:
    """
    Resolve several aesthetics at once.

    Keyword arguments come in ``name=value`` / ``name_aggr=function`` pairs,
    e.g. ``node_colour="age", node_colour_aggr=np.mean``. Aesthetics whose
    value is None are not requested and are left out of the result.

    Returns
    -------
    dict
        Maps aesthetic names (``"node_colour"``, ...) to resolved aesthetics.
    """
    resolved = {}
    for name, value in aesthetics.items():
        if name.endswith('_aggr') or value is None:
            continue
        resolved[name] = resolve_aesthetic(value, aesthetics.get(f'{name}_aggr'), metadata)
    return resolved
