import numpy as np
import pandas as pd
import pytest
from joblib import parallel_backend

from clustertree.aesthetics import MetadataAggregate
from clustertree.tree import get_tree_nodes


def test_nodes_one_row_per_cluster(split_clusterings):
    nodes = get_tree_nodes(split_clusterings, "res")

    assert list(nodes.columns) == ["node", "res", "cluster", "size"]
    assert nodes["node"].tolist() == ["res1C0", "res1C1", "res2C0", "res2C1", "res2C2"]
    assert nodes["cluster"].tolist() == [0, 1, 0, 1, 2]
    assert nodes["size"].tolist() == [3, 3, 2, 2, 2]


def test_resolution_column_is_ordered_categorical():
    clusterings = pd.DataFrame({"K2": [0, 1], "K0.5": [0, 0]})
    nodes = get_tree_nodes(clusterings, "K")

    assert isinstance(nodes["K"].dtype, pd.CategoricalDtype)
    assert nodes["K"].cat.ordered
    assert nodes["K"].cat.categories.tolist() == [2.0, 0.5]
    assert nodes["node"].tolist() == ["K2C0", "K2C1", "K0.5C0"]


def test_cluster_sizes_sum_to_sample_count(random_clusterings):
    nodes = get_tree_nodes(random_clusterings, "K")

    totals = nodes.groupby("K", observed=True)["size"].sum()
    assert (totals == len(random_clusterings)).all()
    assert nodes["node"].is_unique


def test_metadata_aggregated_per_cluster(split_clusterings, split_metadata):
    aggregates = [
        MetadataAggregate("age", np.mean),
        MetadataAggregate("tissue", lambda values: values.mode().iloc[0]),
    ]
    nodes = get_tree_nodes(split_clusterings, "res", split_metadata, aggregates)

    assert list(nodes.columns) == ["node", "res", "cluster", "size", "age", "tissue"]
    by_node = nodes.set_index("node")
    assert by_node.loc["res1C0", "age"] == pytest.approx(20.0)
    assert by_node.loc["res1C1", "age"] == pytest.approx(50.0)
    assert by_node.loc["res2C1", "age"] == pytest.approx(35.0)
    assert by_node.loc["res1C0", "tissue"] == "a"
    assert by_node.loc["res1C1", "tissue"] == "b"


def test_aggregator_receives_only_cluster_members(split_clusterings, split_metadata):
    seen = []

    def record(values):
        seen.append(sorted(values.tolist()))
        return len(values)

    get_tree_nodes(split_clusterings, "res", split_metadata, [MetadataAggregate("age", record)])

    assert seen[0] == [10.0, 20.0, 30.0]
    assert seen[-1] == [50.0, 60.0]


def test_missing_metadata_column_is_skipped(split_clusterings, split_metadata):
    with pytest.warns(UserWarning, match="not found"):
        nodes = get_tree_nodes(
            split_clusterings, "res", split_metadata, [MetadataAggregate("weight", np.mean)]
        )

    assert "weight" not in nodes.columns


def test_repeated_column_keeps_last_aggregator(split_clusterings, split_metadata):
    aggregates = [MetadataAggregate("age", np.mean), MetadataAggregate("age", np.max)]
    with pytest.warns(UserWarning, match="more than once"):
        nodes = get_tree_nodes(split_clusterings, "res", split_metadata, aggregates)

    assert nodes.set_index("node").loc["res1C0", "age"] == 30.0


def test_aggregator_errors_propagate(split_clusterings, split_metadata):
    def broken(values):
        raise ZeroDivisionError("bad aggregate")

    with pytest.raises(ZeroDivisionError, match="bad aggregate"):
        get_tree_nodes(split_clusterings, "res", split_metadata, [MetadataAggregate("age", broken)])


def test_input_errors(split_clusterings, split_metadata):
    with pytest.raises(ValueError, match="rows but clusterings has"):
        get_tree_nodes(split_clusterings, "res", split_metadata.iloc[:4])
    with pytest.raises(ValueError, match="clashes"):
        get_tree_nodes(split_clusterings.rename(columns=lambda c: c.replace("res", "size")), "size")
    with pytest.raises(ValueError, match="clashes"):
        get_tree_nodes(
            split_clusterings, "res", split_metadata.rename(columns={"age": "size"}),
            [MetadataAggregate("size", np.mean)]
        )
    with pytest.raises(TypeError, match="Expected MetadataAggregate"):
        get_tree_nodes(split_clusterings, "res", split_metadata, ["age"])


def test_parallel_nodes_match_sequential(random_clusterings):
    sequential = get_tree_nodes(random_clusterings, "K")
    with parallel_backend("threading"):
        parallel = get_tree_nodes(random_clusterings, "K", n_jobs=2)

    pd.testing.assert_frame_equal(sequential, parallel)


def test_name_column_is_reserved(split_clusterings, split_metadata):
    with pytest.raises(ValueError, match="clashes"):
        get_tree_nodes(
            split_clusterings, "res", split_metadata.rename(columns={"tissue": "name"}),
            [MetadataAggregate("name", lambda values: values.iloc[0])]
        )
    with pytest.raises(ValueError, match="clashes"):
        get_tree_nodes(split_clusterings.rename(columns=lambda c: c.replace("res", "name")), "name")


def test_progress_bar_does_not_change_nodes(random_clusterings):
    quiet = get_tree_nodes(random_clusterings, "K")
    with parallel_backend("threading"):
        verbose = get_tree_nodes(random_clusterings, "K", n_jobs=2, verbose=True)

    pd.testing.assert_frame_equal(quiet, verbose)
