"""
Perceptual duplicate detection for a user's photos.

Two photos are duplicates when the mean structural similarity (SSIM) of their
256x256 luma renditions reaches ``SSIM_THRESHOLD``. Aspect ratio is ignored
when resizing, so a stretched copy of a photo still matches the original.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from PIL import Image

from profilereview.util.errors import DuplicateDetectionError
from profilereview.util.logger import get_logger

logger = get_logger("image_similarity")

SSIM_THRESHOLD = 0.95
STANDARD_SIZE = 256

WINDOW_SIZE = 11
WINDOW_SIGMA = 1.5
K1 = 0.01
K2 = 0.03
DYNAMIC_RANGE = 255.0

_LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def _gaussian_window(size: int = WINDOW_SIZE, sigma: float = WINDOW_SIGMA) -> np.ndarray:
    coords = np.arange(size, dtype=np.float64) - (size - 1) / 2.0
    kernel = np.exp(-(coords ** 2) / (2.0 * sigma ** 2))
    return kernel / kernel.sum()


_WINDOW = _gaussian_window()


def _filter(image: np.ndarray) -> np.ndarray:
    """Separable 'valid' Gaussian filtering of a 2-D array."""
    rows = sliding_window_view(image, WINDOW_SIZE, axis=1) @ _WINDOW
    return sliding_window_view(rows, WINDOW_SIZE, axis=0) @ _WINDOW


def load_image_data(path: Path, size: int = STANDARD_SIZE) -> np.ndarray:
    """
    Load an image as a ``size`` x ``size`` float luma array.

    The image is forced to RGBA and stretched to the square size before the
    luma is taken from its colour channels.

    Raises:
        DuplicateDetectionError: If the file cannot be read or resized.
    """
    try:
        with Image.open(path) as img:
            rgba = img.convert("RGBA").resize((size, size), Image.Resampling.BILINEAR)
            pixels = np.asarray(rgba, dtype=np.float64)
    except (OSError, ValueError) as exc:
        raise DuplicateDetectionError(f"Could not load {path.name} for comparison: {exc}") from exc
    return pixels[..., :3] @ _LUMA_WEIGHTS


def compute_mean_ssim(first: np.ndarray, second: np.ndarray) -> float:
    """Mean SSIM of two equally sized luma arrays."""
    c1 = (K1 * DYNAMIC_RANGE) ** 2
    c2 = (K2 * DYNAMIC_RANGE) ** 2

    mu1 = _filter(first)
    mu2 = _filter(second)
    mu1_sq = mu1 * mu1
    mu2_sq = mu2 * mu2
    mu12 = mu1 * mu2

    sigma1_sq = _filter(first * first) - mu1_sq
    sigma2_sq = _filter(second * second) - mu2_sq
    sigma12 = _filter(first * second) - mu12

    numerator = (2.0 * mu12 + c1) * (2.0 * sigma12 + c2)
    denominator = (mu1_sq + mu2_sq + c1) * (sigma1_sq + sigma2_sq + c2)
    return float(np.mean(numerator / denominator))


class ImageSimilarityDetector:
    """
    Compares photos of one review pass.

    Decoded luma arrays are cached per path for the lifetime of the detector,
    so one instance should be used per user and discarded afterwards.
    """

    def __init__(self, threshold: float = SSIM_THRESHOLD) -> None:
        self.threshold = threshold
        self._cache: Dict[Path, np.ndarray] = {}

    def _load(self, path: Path) -> np.ndarray:
        data = self._cache.get(path)
        if data is None:
            data = load_image_data(path)
            self._cache[path] = data
        return data

    def find_duplicate(self, candidate: Path, others: Sequence[Path]) -> Path | None:
        """Return the first photo in ``others`` that ``candidate`` duplicates."""
        candidate_data = self._load(candidate)
        for other in others:
            if other == candidate:
                continue
            score = compute_mean_ssim(candidate_data, self._load(other))
            logger.debug("[SIMILARITY] %s vs %s: mssim=%.4f", candidate.name, other.name, score)
            if score >= self.threshold:
                return other
        return None

    async def is_duplicate(self, candidate: Path, others: Sequence[Path]) -> bool:
        """True when ``candidate`` reaches the SSIM threshold against any of ``others``."""
        match = await asyncio.to_thread(self.find_duplicate, candidate, list(others))
        return match is not None
