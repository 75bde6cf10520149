"""
GPU Configuration Management

This module handles device selection and the floating-point type used by
the PyTorch backend.
"""

import torch
from dataclasses import dataclass


@dataclass
class GPUConfig:
    """GPU configuration and device management"""
    device: torch.device = None
    dtype: torch.dtype = torch.float64  # float32 halves memory but drifts from the CPU results

    def __post_init__(self):
        if self.device is None:
            self.device = torch.device('cuda' if torch.cuda.is_available() else 'cpu')
        elif isinstance(self.device, str):
            self.device = torch.device(self.device)

    @property
    def eps(self) -> float:
        """Machine epsilon of the configured dtype"""
        return torch.finfo(self.dtype).eps

    def info(self):
        """Print GPU information"""
        if self.device.type == 'cuda':
            print(f"GPU Device: {torch.cuda.get_device_name(self.device)}")
            print(f"GPU Memory: {torch.cuda.get_device_properties(self.device).total_memory / 1e9:.1f} GB")
            print(f"CUDA Version: {torch.version.cuda}")
        else:
            print("Using CPU (CUDA not available)")
        print(f"Dtype: {self.dtype}")
