"""
GPU-Accelerated Joint NMF Package (PyTorch)

This subpackage runs the joint RNA + ATAC factorization with PyTorch,
on CUDA when available and on CPU otherwise.

Configuration:
- GPUConfig: Device and dtype management

Solvers:
- GPUJointNMFSolver: Array-level solver returning a result dict
- gpu_perform_nmf: Table-level API matching scnmf.perform_nmf

Utilities:
- ensure_torch_tensor, ensure_numpy_array: numpy / scipy.sparse ↔ PyTorch

Example Usage:

    from scnmf.gpu import gpu_perform_nmf

    H, W_rna, W_atac, Z, R, hist = gpu_perform_nmf(
        rna_df, atac_df, k=10, n_iter=500, random_state=0
    )

With the default float64 dtype the results match the CPU implementation
for the same seed up to floating-point round-off.
"""

from .config import GPUConfig
from .gpu_joint_nmf import GPUJointNMFSolver, gpu_perform_nmf
from .utils import ensure_torch_tensor, ensure_numpy_array

__all__ = [
    # Configuration
    'GPUConfig',

    # Solvers
    'GPUJointNMFSolver',
    'gpu_perform_nmf',

    # Utilities
    'ensure_torch_tensor',
    'ensure_numpy_array',
]
