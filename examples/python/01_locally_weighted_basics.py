"""
Example 01: Locally Weighted Distances
======================================

Demonstrates binding a locally weighted distance function to a dataset,
querying point distances and region bounds, and how dataset mutations
trigger recomputation of the weight matrices.

Use case: two correlated clusters, each stretched along its own direction.
"""

import logging

import numpy as np

from localdist import (
    DistanceConfig,
    InMemoryDataset,
    LocallyWeightedDistanceFunction,
    MBR,
)

logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

rng = np.random.default_rng(7)

# ── 1. Two correlated clusters ───────────────────────────────────

print("=== 1. Dataset ===\n")

t = rng.uniform(-5, 5, size=30)
horizontal = np.column_stack([t, 0.05 * rng.standard_normal(30)])
diagonal = np.column_stack([t + 20, t + 0.05 * rng.standard_normal(30)])
dataset = InMemoryDataset(np.vstack([horizontal, diagonal]).tolist())
print(f"{len(dataset)} objects, dimensionality {dataset.dimensionality}")

# ── 2. Bind and query ────────────────────────────────────────────

print("\n=== 2. Distances ===\n")

fn = LocallyWeightedDistanceFunction(DistanceConfig(preprocessor="knn_pca"))
with fn.bind(dataset):
    print(f"settings: {fn.settings()}")
    for object_id, dist in fn.knn(0, 5):
        print(f"  neighbour {object_id:>2}: {dist}")

    # ── 3. Region bounds ─────────────────────────────────────────

    print("\n=== 3. Bounds ===\n")

    left = MBR.from_points(dataset.get(i) for i in range(30))
    right = MBR.from_points(dataset.get(i) for i in range(30, 60))
    print(f"min_dist(left, right)        = {fn.min_dist_regions(left, right):.3f}")
    print(f"center_distance(left, right) = {fn.center_distance(left, right):.3f}")
    print(f"min_dist(right, object 0)    = {fn.min_dist(right, 0)}")

    # ── 4. Mutations recompute the matrices ──────────────────────

    print("\n=== 4. Mutation ===\n")

    new_id = dataset.insert([0.0, 3.0])
    print(f"distance(0, {new_id}) = {fn.distance(0, new_id)}")
