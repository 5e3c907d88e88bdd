import numpy as np
import pandas as pd
import pytest

from clustertree.aesthetics import (
    Constant,
    MetadataAggregate,
    resolve_aesthetic,
    resolve_aesthetics,
)


@pytest.fixture
def metadata():
    return pd.DataFrame({"age": [1, 2, 3], "batch": ["x", "y", "y"]})


def test_column_name_becomes_metadata_aggregate(metadata):
    aesthetic = resolve_aesthetic("age", np.mean, metadata)
    assert aesthetic == MetadataAggregate("age", np.mean)


def test_literal_becomes_constant(metadata):
    assert resolve_aesthetic("steelblue", None, metadata) == Constant("steelblue")
    assert resolve_aesthetic(0.5, np.mean, metadata) == Constant(0.5)
    assert resolve_aesthetic("age", np.mean, None) == Constant("age")


def test_explicit_variants_pass_through(metadata):
    aggregate = MetadataAggregate("missing", np.median)
    assert resolve_aesthetic(aggregate, None, metadata) is aggregate
    assert resolve_aesthetic(Constant("age"), np.mean, metadata) == Constant("age")


def test_column_without_aggregator_is_an_error(metadata):
    with pytest.raises(ValueError, match="aggregation function is required"):
        resolve_aesthetic("age", None, metadata)


def test_resolve_aesthetics_skips_unset(metadata):
    resolved = resolve_aesthetics(
        metadata,
        node_colour="batch",
        node_colour_aggr=len,
        node_size=None,
        node_size_aggr=None,
        node_alpha=0.7,
    )
    assert resolved == {
        "node_colour": MetadataAggregate("batch", len),
        "node_alpha": Constant(0.7),
    }
