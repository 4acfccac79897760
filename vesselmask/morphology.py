# -*- coding: utf-8 -*-
"""
morphology.py — Multi-Scale Morphological Background Suppression
=================================================================

A single opening/closing pass either leaves large non-vessel structures
(optic disc, lesions) in the background estimate when the kernel is small,
or swallows genuine vessels when it is large.  :class:`MultiScaleTopHat`
instead cascades opening and closing over increasing square kernels, so each
scale refines the background estimate produced by the previous one.

Only structures narrower than the largest kernel survive the final
subtraction; they appear bright on a flattened, near-zero background.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from .config import POLARITIES
from .errors import ConfigurationError
from .preprocessing import ContrastEnhancer, select_channel, ensure_single_channel

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Structuring Elements
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StructuringElement:
    """Filled square kernel of side ``2 * radius + 1`` anchored at its centre."""

    radius: int
    kernel: np.ndarray = field(repr=False, compare=False)

    @classmethod
    def rectangle(cls, radius: int) -> "StructuringElement":
        side = 2 * radius + 1
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (side, side),
                                           (radius, radius))
        kernel.flags.writeable = False
        return cls(radius=radius, kernel=kernel)

    @property
    def size(self) -> int:
        return 2 * self.radius + 1

    @property
    def anchor(self) -> Tuple[int, int]:
        return (self.radius, self.radius)


def build_structuring_elements(
        radii: Iterable[int]) -> Tuple[StructuringElement, ...]:
    """Create one rectangular element per radius.

    Raises
    ------
    ConfigurationError
        If ``radii`` is empty or not strictly increasing.  The cascade in
        :class:`MultiScaleTopHat` is only meaningful from fine to coarse.
    """
    radii = tuple(int(r) for r in radii)
    if not radii:
        raise ConfigurationError("At least one structuring-element radius is required")
    if any(r < 1 for r in radii) or any(b <= a for a, b in zip(radii, radii[1:])):
        raise ConfigurationError(
            f"Structuring-element radii must be positive and strictly "
            f"increasing, got {radii}")
    return tuple(StructuringElement.rectangle(r) for r in radii)


def opening(image: np.ndarray, se: StructuringElement) -> np.ndarray:
    """Erode then dilate: removes bright structures smaller than ``se``."""
    return cv2.morphologyEx(image, cv2.MORPH_OPEN, se.kernel, anchor=se.anchor)


def closing(image: np.ndarray, se: StructuringElement) -> np.ndarray:
    """Dilate then erode: fills dark structures smaller than ``se``."""
    return cv2.morphologyEx(image, cv2.MORPH_CLOSE, se.kernel, anchor=se.anchor)


# ──────────────────────────────────────────────────────────────────────────────
# Top-Hat Cascade
# ──────────────────────────────────────────────────────────────────────────────

class MultiScaleTopHat:
    """Background suppression by cascaded opening/closing.

    Parameters
    ----------
    radii : iterable of int
        Strictly increasing structuring-element radii (default 2, 5, 11,
        i.e. kernel sides 5, 11 and 23).
    enhancer : ContrastEnhancer, optional
        Applied to the background-removed response to normalise its dynamic
        range.  Defaults to ``ContrastEnhancer(clip_limit=3)``.
    polarity : str
        ``'bright'`` keeps structures brighter than the background
        (``channel - background``); ``'dark'`` keeps darker ones
        (``background - channel``).  Both subtractions saturate at zero.
    """

    def __init__(self, radii: Iterable[int] = (2, 5, 11),
                 enhancer: Optional[ContrastEnhancer] = None,
                 polarity: str = "bright"):
        if polarity not in POLARITIES:
            raise ConfigurationError(
                f"Unknown polarity '{polarity}'. Choose from {list(POLARITIES)}")
        self.structuring_elements = build_structuring_elements(radii)
        self.enhancer = enhancer if enhancer is not None else ContrastEnhancer()
        self.polarity = polarity

    @property
    def radii(self) -> Tuple[int, ...]:
        return tuple(se.radius for se in self.structuring_elements)

    def estimate_background(self, channel: np.ndarray) -> np.ndarray:
        """Run the open/close cascade and return the final background estimate."""
        channel = ensure_single_channel(channel, "estimate_background")
        background = channel
        for se in self.structuring_elements:
            opened = opening(background, se)
            background = closing(opened, se)
        return background

    def remove_background(self, channel: np.ndarray) -> np.ndarray:
        """Saturating difference between ``channel`` and its background."""
        channel = ensure_single_channel(channel, "remove_background")
        background = self.estimate_background(channel)
        if self.polarity == "bright":
            return cv2.subtract(channel, background)
        return cv2.subtract(background, channel)

    def suppress_background(self, image: np.ndarray,
                            channel_index: int = 0) -> np.ndarray:
        """Background-removed, contrast-enhanced vessel response.

        Parameters
        ----------
        image : np.ndarray
            Single-channel uint8 image, or a multi-channel image from which
            plane ``channel_index`` is used.
        channel_index : int
            Plane to process when ``image`` has more than one channel.

        Returns
        -------
        np.ndarray
            ``(H, W)`` uint8 response; never negative since the subtraction
            saturates.
        """
        channel = select_channel(image, channel_index)
        response = self.remove_background(channel)
        logger.debug("top-hat %s: response range [%d, %d]", self.radii,
                     int(response.min()), int(response.max()))
        return self.enhancer.enhance(response)

    def __repr__(self):
        return (f"{type(self).__name__}(radii={self.radii}, "
                f"enhancer={self.enhancer!r}, polarity={self.polarity!r})")
