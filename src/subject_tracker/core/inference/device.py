"""Inference device selection."""

import logging

logger = logging.getLogger(__name__)


def resolve_device(preference="auto"):
    """
    Pick a torch device string.

    A preference other than "auto" is returned unchanged. Otherwise CUDA is
    preferred, then Apple MPS, then CPU.
    """
    if preference and preference != "auto":
        logger.info(f"Using user-specified device: {preference}")
        return preference

    try:
        import torch
    except ImportError:
        logger.info("PyTorch not installed, using CPU")
        return "cpu"

    if torch.cuda.is_available():
        device = "cuda:0"
        logger.info(f"CUDA GPU detected, using {device}")
    elif getattr(torch.backends, "mps", None) is not None and torch.backends.mps.is_available():
        device = "mps"
        logger.info("Apple Metal Performance Shaders (MPS) detected, using mps")
    else:
        device = "cpu"
        logger.info("No GPU detected, using CPU")
    return device
