"""
Plotting helpers for joint NMF results.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Optional, Sequence


def plot_objective_history(
    obj_history: Sequence[float],
    ax: Optional[plt.Axes] = None,
    log_scale: bool = True
) -> plt.Axes:
    """Plot the objective value against the iteration number."""
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 4))

    iterations = np.arange(1, len(obj_history) + 1)
    ax.plot(iterations, obj_history, lw=1.5)

    if log_scale and np.all(np.asarray(obj_history) > 0):
        ax.set_yscale('log')

    ax.set_xlabel('Iteration')
    ax.set_ylabel('Objective')
    ax.set_title('Joint NMF convergence')
    ax.grid(True, alpha=0.3)

    return ax


def plot_embedding(
    embedding: np.ndarray,
    labels: Optional[Sequence] = None,
    ax: Optional[plt.Axes] = None,
    s: float = 10
) -> plt.Axes:
    """
    Scatter a 2 × cells embedding, as returned by ``reduce_dims_atac``.

    Cells are colored by ``labels`` when given.
    """
    embedding = np.asarray(embedding)
    if embedding.shape[0] != 2:
        raise ValueError(f"embedding must have shape (2, n_cells), got {embedding.shape}")

    if ax is None:
        _, ax = plt.subplots(figsize=(5, 5))

    if labels is None:
        ax.scatter(embedding[0], embedding[1], s=s, alpha=0.8, edgecolors='none')
    else:
        labels = np.asarray(labels)
        for label in np.unique(labels):
            ind = labels == label
            ax.scatter(embedding[0, ind], embedding[1, ind], s=s, alpha=0.8,
                       edgecolors='none', label=str(label))
        ax.legend(fontsize=8, markerscale=2, bbox_to_anchor=(1, 1), loc='upper left')

    ax.set_xlabel('UMAP 1')
    ax.set_ylabel('UMAP 2')

    return ax
