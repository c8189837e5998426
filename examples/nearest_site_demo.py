#!/usr/bin/env python3
"""
Demonstration of nearest-site queries.

This script shows:
1. Building a diagram from random sites
2. Nearest-site and cell-membership queries, including a boundary tie
3. Rasterizing the cells over a bounding box
4. Drawing the raster, the sites and the cell edges with matplotlib
"""

import sys

import numpy as np
import matplotlib.pyplot as plt

from py_voronoi.core import VoronoiDiagram, BoundingBox
from py_voronoi.utils import configure_logging

WIDTH = 800
HEIGHT = 600

def main(output_path: str = "voronoi_cells.png"):
    configure_logging(fmt="console")

    print("=== Nearest-site Voronoi Demo ===\n")

    # 1. Random sites
    rng = np.random.default_rng(42)
    sites = rng.uniform([0, 0], [WIDTH, HEIGHT], size=(12, 2)).round()
    diagram = VoronoiDiagram.from_array(sites)
    print(f"1. Built {diagram}")

    # 2. Queries
    query = (WIDTH / 2, HEIGHT / 2)
    k, dist = diagram.nearest_with_distance(query)
    print(f"\n2. Nearest site to {query}: #{k} at {tuple(sites[k])}, distance {dist:.1f}")
    print(f"   Cells containing the point: {diagram.cell_indices(query)}")

    tie = VoronoiDiagram([(0, 0), (2, 0)])
    print(f"   Tie at (1, 0): nearest={tie.nearest((1, 0))}, "
          f"cells={tie.cell_indices((1, 0))}")

    # 3. Raster
    bbox = BoundingBox(0, WIDTH, 0, HEIGHT)
    labels = diagram.label_grid(bbox, (WIDTH // 2, HEIGHT // 2))
    counts = np.bincount(labels.ravel(), minlength=len(diagram))
    print(f"\n3. Rasterized {labels.size} samples, pixels per cell: {counts.tolist()}")

    # 4. Plot
    fig, ax = plt.subplots(figsize=(10, 7.5))
    ax.imshow(labels, origin="lower", extent=(0, WIDTH, 0, HEIGHT),
              cmap="tab20", interpolation="nearest")
    ax.scatter(sites[:, 0], sites[:, 1], c="black", s=12)
    for i, (x, y) in enumerate(sites):
        ax.annotate(str(i), (x, y), textcoords="offset points", xytext=(4, 4), fontsize=8)

    edges = diagram.edges(bbox)
    for edge in edges:
        ax.plot([edge.start.x, edge.end.x], [edge.start.y, edge.end.y], "k-", linewidth=1)

    ax.set_title("Voronoi cells (nearest site, ties to lowest index)")
    fig.savefig(output_path, dpi=100, bbox_inches="tight")
    print(f"\n4. Drew {len(edges)} edges, saved plot to {output_path}")

if __name__ == "__main__":
    main(*sys.argv[1:2])
