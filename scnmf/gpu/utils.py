"""
Conversions between numpy / scipy.sparse inputs and PyTorch tensors.
"""

import torch
import numpy as np
import scipy.sparse as sp
from typing import Union


def ensure_torch_tensor(
    data: Union[np.ndarray, sp.spmatrix, torch.Tensor],
    device: torch.device,
    dtype: torch.dtype = torch.float64
) -> torch.Tensor:
    """Convert a dense array, sparse matrix or tensor to a dense tensor on ``device``"""
    if isinstance(data, torch.Tensor):
        return data.to(device=device, dtype=dtype)
    elif sp.issparse(data):
        return torch.from_numpy(data.toarray()).to(device=device, dtype=dtype)
    elif isinstance(data, np.ndarray):
        return torch.from_numpy(data).to(device=device, dtype=dtype)
    else:
        raise TypeError(f"Unsupported data type: {type(data)}")


def ensure_numpy_array(
    tensor: torch.Tensor
) -> np.ndarray:
    """Convert PyTorch tensor to numpy array"""
    return tensor.cpu().detach().numpy()
