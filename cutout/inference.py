from __future__ import annotations

import numpy as np
import torch

from .model import forward_model


def _extract_primary_output(y):
    """
    Segmentation models may return:
      - a single tensor
      - (tensor, ...) tuple/list (final stage is typically last)
      - dict / ModelOutput with tensor fields
    """
    if isinstance(y, torch.Tensor):
        return y
    if isinstance(y, (list, tuple)) and len(y) > 0:
        for item in reversed(y):
            if isinstance(item, torch.Tensor):
                return item
        return y[-1]
    if isinstance(y, dict):
        for k in ("logits", "pred", "alpha", "mask"):
            v = y.get(k, None)
            if isinstance(v, torch.Tensor):
                return v
        for v in y.values():
            if isinstance(v, torch.Tensor):
                return v
        return next(iter(y.values()))
    return y


def predict_matte(model: torch.nn.Module, x: torch.Tensor, device: torch.device) -> np.ndarray:
    """
    Forward pass, logits -> probability matte.

    Output: float32 numpy array in [0,1] with the spatial size of `x`.
    """
    if x.ndim != 4 or x.shape[0] != 1:
        raise ValueError(f"Expected input tensor (1,3,H,W), got {tuple(x.shape)}")
    size = tuple(x.shape[-2:])

    y = forward_model(model, x.float().to(device))
    y = _extract_primary_output(y)
    if not isinstance(y, torch.Tensor):
        raise RuntimeError(f"Model output is not a tensor: {type(y)}")

    # (1,1,H,W), (1,H,W) or (H,W)
    if y.ndim == 4:
        y = y[0, 0]
    elif y.ndim == 3:
        y = y[0]
    elif y.ndim != 2:
        raise RuntimeError(f"Unexpected output tensor shape: {tuple(y.shape)}")

    if tuple(y.shape[-2:]) != size:
        y = torch.nn.functional.interpolate(
            y.unsqueeze(0).unsqueeze(0),
            size=size,
            mode="bilinear",
            align_corners=False,
        )[0, 0]

    p = torch.sigmoid(y.float())
    if torch.isnan(p).any():
        raise RuntimeError("NaNs detected in predicted matte.")

    matte = p.detach().to("cpu").numpy().astype(np.float32, copy=False)
    return np.clip(matte, 0.0, 1.0)
