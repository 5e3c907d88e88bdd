import numpy as np
import pandas as pd

from clustertree import ClusterTree
from clustertree.utils import clusterings_from_labels

# Set random seed for reproducibility
rng = np.random.default_rng(42)

# Simulate three nested clusterings of 300 samples
n_samples = 300
coarse = rng.integers(0, 2, size=n_samples)
medium = coarse * 2 + rng.integers(0, 2, size=n_samples)
fine = medium * 2 + rng.integers(0, 2, size=n_samples)

# Relabel a few samples so the tree is not perfectly nested
noisy = rng.random(n_samples) < 0.05
fine[noisy] = rng.integers(0, 8, size=noisy.sum())

labels = {0: coarse, 1: medium, 2: fine}
resolutions = {0: 0.1, 1: 0.5, 2: 1.0}
clusterings = clusterings_from_labels(labels, prefix='res_', resolutions=resolutions)
print(f"Clustering columns: {list(clusterings.columns)}")

metadata = pd.DataFrame({
    'n_counts': rng.poisson(1000, size=n_samples),
    'batch': rng.choice(['A', 'B'], size=n_samples),
})

# Build the cluster tree
print("\n=== Building cluster tree ===")
tree = ClusterTree(
    prefix='res_',
    count_filter=0,
    prop_filter=0.1,
    node_colour='n_counts',
    node_colour_aggr=np.mean,
    node_alpha=0.8,
    verbose=True
)
tree.fit(clusterings, metadata)

print("\nNodes:")
print(tree.nodes_)

print(f"\nEdges before filtering: {len(tree.edges_)}")
print(f"Edges after filtering: {len(tree.filtered_edges_)}")
print(tree.filtered_edges_[['from_node', 'to_node', 'count', 'proportion']])

# Stricter filtering without recomputing nodes and edges
print("\n=== Refiltering ===")
graph = tree.refilter(count_filter=10, prop_filter=0.3)
print(graph.summary())
print(f"Constant aesthetics for the renderer: {graph['aesthetics']}")
print(f"Aggregated aesthetics: {graph['aggregated']}")
