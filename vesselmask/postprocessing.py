# -*- coding: utf-8 -*-
"""
postprocessing.py — Binarisation and Small-Blob Removal
========================================================

Turns the grayscale vessel response into a clean binary mask:

    * :class:`Binarizer`  — global mean threshold.
    * :class:`BlobFilter` — removes connected regions whose contour encloses
      less than a minimum area.
"""

import logging
from typing import List, Optional

import cv2
import numpy as np

from .preprocessing import ensure_single_channel

logger = logging.getLogger(__name__)

FOREGROUND = 255
BACKGROUND = 0


class Binarizer:
    """Global mean thresholding.

    Using the image's own mean instead of a fixed constant adapts to the
    brightness left over by upstream enhancement, at the price of letting
    large bright or dark regions pull the threshold.
    """

    def threshold(self, channel: np.ndarray) -> float:
        """Mean intensity of ``channel``."""
        channel = ensure_single_channel(channel, "Binarizer.threshold")
        return float(np.mean(channel, dtype=np.float64))

    def binarize(self, channel: np.ndarray) -> np.ndarray:
        """Pixels strictly above the mean become 255, all others 0.

        A zero-variance channel has no pixel above its mean, so it yields an
        all-background mask.
        """
        channel = ensure_single_channel(channel, "Binarizer.binarize")
        mean = self.threshold(channel)

        binary = np.zeros_like(channel, dtype=np.uint8)
        binary[channel > mean] = FOREGROUND

        if not binary.any():
            logger.debug("binarize: uniform channel (mean=%.2f), "
                         "mask is all background", mean)
        return binary


def _nesting_depths(hierarchy: Optional[np.ndarray]) -> List[int]:
    """Depth of every contour in a ``RETR_TREE`` hierarchy.

    Even depths are outer boundaries of foreground regions (including
    islands inside holes); odd depths are hole boundaries.
    """
    if hierarchy is None:
        return []
    parents = hierarchy[0, :, 3]
    depths = []
    for parent in parents:
        depth = 0
        while parent >= 0:
            depth += 1
            parent = parents[parent]
        depths.append(depth)
    return depths


def find_blobs(mask: np.ndarray, outer_only: bool = False) -> List[np.ndarray]:
    """Contours of the foreground in ``mask``.

    Parameters
    ----------
    mask : np.ndarray
        Binary mask (H, W).
    outer_only : bool
        Skip hole boundaries and return one contour per connected region,
        nested islands included.

    Returns
    -------
    list of np.ndarray
        One ``(N, 1, 2)`` int32 point array per contour.
    """
    mask = ensure_single_channel(mask, "find_blobs")
    contours, hierarchy = cv2.findContours(mask.copy(), cv2.RETR_TREE,
                                           cv2.CHAIN_APPROX_SIMPLE)
    if not outer_only:
        return list(contours)
    return [c for c, depth in zip(contours, _nesting_depths(hierarchy))
            if depth % 2 == 0]


class BlobFilter:
    """Erases connected regions enclosing less than ``min_area`` pixels²."""

    def __init__(self, min_area: float = 25.0):
        self.min_area = float(min_area)

    def remove_small_blobs(self, mask: np.ndarray,
                           min_area: Optional[float] = None) -> np.ndarray:
        """Paint every region whose outer contour encloses less than
        ``min_area`` as background.

        Hole boundaries are traced along the foreground pixels that surround
        the hole, so they are never filled: a small hole inside a large
        region leaves that region untouched.

        Parameters
        ----------
        mask : np.ndarray
            Binary mask (H, W) with values {0, 255}.
        min_area : float, optional
            Overrides the instance threshold for this call.

        Returns
        -------
        np.ndarray
            A new mask; regions at or above the threshold are untouched.
        """
        mask = ensure_single_channel(mask, "remove_small_blobs")
        limit = self.min_area if min_area is None else float(min_area)

        cleaned = mask.copy()
        small = [c for c in find_blobs(mask, outer_only=True)
                 if cv2.contourArea(c) < limit]
        # One call per contour: filling nested contours together would
        # leave their overlap unpainted.
        for contour in small:
            cv2.drawContours(cleaned, [contour], -1, BACKGROUND, thickness=-1)

        logger.debug("remove_small_blobs: erased %d region(s) below %.1f px²",
                     len(small), limit)
        return cleaned

    def __repr__(self):
        return f"{type(self).__name__}(min_area={self.min_area})"
