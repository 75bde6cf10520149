"""
Utility modules for joint NMF results.
"""

from .evaluation import (
    compute_reconstruction_error,
    relative_error,
    sparsity,
    match_factors,
    normalize_factors,
)
from .rank_selection import (
    amari_distance,
    stability_between_solutions,
    rank_stability_score,
    select_rank,
)
from .plotting import plot_objective_history, plot_embedding

__all__ = [
    'compute_reconstruction_error',
    'relative_error',
    'sparsity',
    'match_factors',
    'normalize_factors',
    # Rank selection
    'amari_distance',
    'stability_between_solutions',
    'rank_stability_score',
    'select_rank',
    # Plotting
    'plot_objective_history',
    'plot_embedding',
]
