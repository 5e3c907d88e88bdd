import os
import sys

import numpy as np
import pandas as pd
import pytest

# Ensure the project root is on sys.path so tests can import `clustertree`
# when running directly from the repository.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture
def split_clusterings():
    """Six samples: two clusters at resolution 1 split into three at resolution 2."""
    return pd.DataFrame(
        {
            "res1": [0, 0, 0, 1, 1, 1],
            "res2": [0, 0, 1, 1, 2, 2],
        },
        index=[f"s{i}" for i in range(1, 7)],
    )


@pytest.fixture
def split_metadata():
    return pd.DataFrame(
        {
            "age": [10.0, 20.0, 30.0, 40.0, 50.0, 60.0],
            "tissue": ["a", "a", "b", "b", "b", "c"],
        },
        index=[f"s{i}" for i in range(1, 7)],
    )


@pytest.fixture
def random_clusterings():
    rng = np.random.default_rng(0)
    n_samples = 200
    base = rng.integers(0, 3, size=n_samples)
    return pd.DataFrame(
        {
            "K1": base,
            "K2": base * 2 + rng.integers(0, 2, size=n_samples),
            "K3": rng.integers(0, 8, size=n_samples),
            "K4": rng.integers(0, 5, size=n_samples),
        }
    )
