"""
GPU-Accelerated Joint RNA + ATAC NMF

PyTorch implementation of the joint factorization in :mod:`scnmf.joint_nmf`.
The update sequence is identical; only the dense matrix products run on
the configured device. The initial state is sampled with numpy exactly as
on the CPU, so both backends start from the same matrices for a given seed.
"""

import numpy as np
import pandas as pd
import scipy.sparse as sp
import torch
import time
import warnings
from typing import Dict, List, Optional, Tuple, Union

from scnmf.data import df_to_array, loadings_to_df
from scnmf.exceptions import InvalidInputError, NumericalInstabilityWarning
from scnmf.state import initialize_state, validate_parameters
from .config import GPUConfig
from .utils import ensure_numpy_array, ensure_torch_tensor


class GPUJointNMFSolver:
    """
    GPU-accelerated joint NMF solver.

    Holds the device configuration; each call to :meth:`fit` is an
    independent run.
    """

    def __init__(self, gpu_config: Optional[GPUConfig] = None):
        self.config = gpu_config or GPUConfig()
        self.device = self.config.device
        self.dtype = self.config.dtype
        self.eps = self.config.eps

    def _update_W_rna(self, W_rna, X_rna, H):
        return W_rna * (X_rna @ H.T) / (W_rna @ H @ H.T + self.eps)

    def _update_W_atac(self, W_atac, X_atac, H, ZR):
        return W_atac * (X_atac @ ZR @ H.T) / (W_atac @ H @ H.T + self.eps)

    def _update_H(self, W_rna, W_atac, X_rna, X_atac, H, Z, ZR, alpha, lambda_, gamma):
        k = H.shape[0]
        ones = torch.ones((k, k), device=self.device, dtype=self.dtype)

        numerator = (alpha * W_rna.T @ X_rna
                     + W_atac.T @ X_atac @ ZR
                     + lambda_ * H @ (Z + Z.T))
        denominator = (alpha * W_rna.T @ W_rna
                       + W_atac.T @ W_atac
                       + 2 * lambda_ * H @ H.T
                       + gamma * ones) @ H

        return H * numerator / (denominator + self.eps)

    def _update_Z(self, W_atac, X_atac, H, Z, R, lambda_):
        numerator = (X_atac.T @ W_atac @ H) * R + lambda_ * H.T @ H
        denominator = (X_atac.T @ X_atac @ (Z * R)) * R + lambda_ * Z

        return Z * numerator / (denominator + self.eps)

    def _objective(self, X_rna, X_atac, W_rna, W_atac, H, Z, R, alpha, lambda_, gamma):
        obj = (alpha * torch.linalg.norm(X_rna - W_rna @ H) ** 2
               + torch.linalg.norm(X_atac @ (Z * R) - W_atac @ H) ** 2
               + lambda_ * torch.linalg.norm(Z - H.T @ H)
               + gamma * torch.sum(torch.sum(H, dim=0) ** 2))
        return obj.item()

    def fit(
        self,
        X_rna: Union[np.ndarray, sp.spmatrix],
        X_atac: Union[np.ndarray, sp.spmatrix],
        k: int,
        dropout_prob: float = 0.25,
        n_iter: int = 500,
        alpha: float = 1.0,
        lambda_: float = 100000.0,
        gamma: float = 1.0,
        verbose: int = 0,
        random_state: Optional[Union[int, np.random.RandomState]] = None,
        max_time: Optional[float] = None
    ) -> Dict:
        """
        Fit the joint model to RNA and ATAC matrices.

        Parameters
        ----------
        X_rna : array-like
            RNA matrix (genes × cells), dense or scipy.sparse
        X_atac : array-like
            ATAC matrix (loci × cells), dense or scipy.sparse
        k : int
            Rank of the shared representation
        dropout_prob, n_iter, alpha, lambda_, gamma, random_state, max_time
            As in :func:`scnmf.perform_nmf`
        verbose : int
            Verbosity level

        Returns
        -------
        result : dict
            Contains: H, W_rna, W_atac, Z, R (numpy arrays), obj_history,
            total_time
        """
        validate_parameters(k, dropout_prob, n_iter)

        if X_rna.shape[1] != X_atac.shape[1]:
            raise InvalidInputError(
                f"RNA and ATAC data must describe the same cells, got "
                f"{X_rna.shape[1]} and {X_atac.shape[1]} cells"
            )

        start_time = time.time()

        X_rna_t = ensure_torch_tensor(X_rna, self.device, self.dtype)
        X_atac_t = ensure_torch_tensor(X_atac, self.device, self.dtype)

        if torch.any(X_rna_t < 0) or torch.any(X_atac_t < 0):
            warnings.warn("Input contains negative values. They will be clipped to 0.",
                          UserWarning)
            X_rna_t = torch.clamp(X_rna_t, min=0)
            X_atac_t = torch.clamp(X_atac_t, min=0)

        n_genes, n_cells = X_rna_t.shape
        n_loci = X_atac_t.shape[0]

        if verbose:
            print(f"\n=== GPU joint NMF ===")
            print(f"Genes: {n_genes}, loci: {n_loci}, cells: {n_cells}, rank: {k}")

        state = initialize_state(
            n_genes, n_loci, n_cells, k,
            dropout_prob=dropout_prob,
            alpha=alpha, lambda_=lambda_, gamma=gamma,
            random_state=random_state
        )

        H = ensure_torch_tensor(state.H, self.device, self.dtype)
        Z = ensure_torch_tensor(state.Z, self.device, self.dtype)
        R = ensure_torch_tensor(state.R, self.device, self.dtype)
        W_rna = ensure_torch_tensor(state.W_rna, self.device, self.dtype)
        W_atac = ensure_torch_tensor(state.W_atac, self.device, self.dtype)

        obj_history = []

        for iteration in range(n_iter):
            H = H / H.sum(dim=1, keepdim=True)
            W_rna = self._update_W_rna(W_rna, X_rna_t, H)
            W_atac = self._update_W_atac(W_atac, X_atac_t, H, Z * R)
            H = self._update_H(W_rna, W_atac, X_rna_t, X_atac_t, H, Z, Z * R,
                               alpha, lambda_, gamma)
            Z = self._update_Z(W_atac, X_atac_t, H, Z, R, lambda_)

            current_obj = self._objective(X_rna_t, X_atac_t, W_rna, W_atac, H, Z, R,
                                          alpha, lambda_, gamma)
            obj_history.append(current_obj)

            if verbose:
                print(f"Iter {iteration + 1:4d}: objective = {current_obj:.6e}")

            if max_time is not None and time.time() - start_time >= max_time:
                if verbose:
                    print(f"Time limit of {max_time}s reached at iteration {iteration + 1}")
                break

        if not np.isfinite(obj_history[-1]):
            warnings.warn(
                f"Objective is not finite after {len(obj_history)} iterations; "
                f"lambda = {lambda_} may be too large for the data scale.",
                NumericalInstabilityWarning
            )

        total_time = time.time() - start_time

        if verbose:
            print(f"Total time: {total_time:.3f}s")

        return {
            'H': ensure_numpy_array(H),
            'W_rna': ensure_numpy_array(W_rna),
            'W_atac': ensure_numpy_array(W_atac),
            'Z': ensure_numpy_array(Z),
            'R': state.R,
            'obj_history': obj_history,
            'total_time': total_time
        }


def gpu_perform_nmf(
    rna_df: pd.DataFrame,
    atac_df: pd.DataFrame,
    k: int,
    device: Optional[torch.device] = None,
    gene_col: str = "gene_name",
    locus_col: str = "locus_name",
    verbose: int = 0,
    **kwargs
) -> Tuple[np.ndarray, pd.DataFrame, pd.DataFrame, np.ndarray, np.ndarray, List[float]]:
    """
    High-level API for GPU-accelerated joint NMF.

    Same inputs and outputs as :func:`scnmf.perform_nmf`.

    Parameters
    ----------
    rna_df, atac_df : pd.DataFrame
        Labeled RNA and ATAC tables
    k : int
        Rank of the shared representation
    device : torch.device, optional
        GPU device (auto-selected if None)
    gene_col, locus_col : str
        Identifier column names
    verbose : int
        Verbosity level
    **kwargs
        Additional arguments passed to GPUJointNMFSolver.fit

    Returns
    -------
    H, W_rna_df, W_atac_df, Z, R, obj_history
    """
    validate_parameters(k, kwargs.get('dropout_prob', 0.25), kwargs.get('n_iter', 500))

    X_rna, gene_names = df_to_array(rna_df, gene_col)
    X_atac, locus_names = df_to_array(atac_df, locus_col)

    config = GPUConfig(device=device)

    if verbose:
        config.info()

    solver = GPUJointNMFSolver(config)
    result = solver.fit(X_rna, X_atac, k, verbose=verbose, **kwargs)

    W_rna_df = loadings_to_df(result['W_rna'], gene_names, gene_col)
    W_atac_df = loadings_to_df(result['W_atac'], locus_names, locus_col)

    return (result['H'], W_rna_df, W_atac_df, result['Z'], result['R'],
            result['obj_history'])
