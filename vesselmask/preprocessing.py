# -*- coding: utf-8 -*-
"""
preprocessing.py — Input Validation, Lightness Extraction and CLAHE
====================================================================

Every function here takes an image (ndarray) and returns a new image; inputs
are never modified in place.  Single-channel helpers reject colour input with
:class:`~vesselmask.errors.InvalidInputError` rather than guessing a channel.
"""

from typing import Optional, Tuple

import cv2
import numpy as np

from .errors import InvalidInputError


# ──────────────────────────────────────────────────────────────────────────────
# Validation
# ──────────────────────────────────────────────────────────────────────────────

def _check_array(image, what: str) -> None:
    if image is None:
        raise InvalidInputError(f"{what}: image is None")
    if not isinstance(image, np.ndarray):
        raise InvalidInputError(
            f"{what}: expected numpy.ndarray, got {type(image).__name__}")
    if image.size == 0 or 0 in image.shape:
        raise InvalidInputError(f"{what}: image is empty, shape={image.shape}")
    if image.dtype != np.uint8:
        raise InvalidInputError(
            f"{what}: expected 8-bit unsigned image, got dtype {image.dtype}")


def ensure_single_channel(image: np.ndarray, what: str = "image") -> np.ndarray:
    """Validate an 8-bit single-channel ``(H, W)`` image and return it."""
    _check_array(image, what)
    if image.ndim == 3 and image.shape[2] == 1:
        return image[:, :, 0]
    if image.ndim != 2:
        channels = image.shape[2] if image.ndim == 3 else "?"
        raise InvalidInputError(
            f"{what}: expected a single-channel image, got shape {image.shape} "
            f"({channels} channels)")
    return image


def ensure_color_image(image: np.ndarray, what: str = "image") -> np.ndarray:
    """Validate an 8-bit three-channel ``(H, W, 3)`` BGR image and return it."""
    _check_array(image, what)
    if image.ndim != 3 or image.shape[2] != 3:
        raise InvalidInputError(
            f"{what}: expected a 3-channel colour image, got shape {image.shape}")
    return image


# ──────────────────────────────────────────────────────────────────────────────
# Channel Extraction
# ──────────────────────────────────────────────────────────────────────────────

def select_channel(image: np.ndarray, channel_index: int = 0) -> np.ndarray:
    """Return one plane of a multi-channel image.

    A single-channel image is returned unchanged, provided ``channel_index``
    is 0.

    Parameters
    ----------
    image : np.ndarray
        ``(H, W)`` or ``(H, W, C)`` uint8 image.
    channel_index : int
        Plane to extract.
    """
    _check_array(image, "select_channel")
    if image.ndim == 2:
        if channel_index != 0:
            raise InvalidInputError(
                f"select_channel: channel {channel_index} requested from a "
                f"single-channel image")
        return image
    if image.ndim != 3 or not 0 <= channel_index < image.shape[2]:
        raise InvalidInputError(
            f"select_channel: channel {channel_index} out of range for shape "
            f"{image.shape}")
    return np.ascontiguousarray(image[:, :, channel_index])


def extract_lightness(img_bgr: np.ndarray) -> np.ndarray:
    """Return the L plane of the CIE L*a*b* representation of a BGR image.

    Lightness is perceptually uniform, so vessel contrast does not depend
    on the hue of the surrounding tissue.
    """
    ensure_color_image(img_bgr, "extract_lightness")
    lab = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2Lab)
    return np.ascontiguousarray(lab[:, :, 0])


def boosted_lightness(img_bgr: np.ndarray,
                      enhancer: "ContrastEnhancer") -> np.ndarray:
    """CLAHE-equalised lightness replicated across three channels.

    Parameters
    ----------
    img_bgr : np.ndarray
        Input fundus image in BGR format.
    enhancer : ContrastEnhancer
        Equaliser applied to the L plane.

    Returns
    -------
    np.ndarray
        ``(H, W, 3)`` uint8 image whose three planes are identical.
    """
    equalized = enhancer.enhance(extract_lightness(img_bgr))
    return cv2.merge([equalized, equalized, equalized])


# ──────────────────────────────────────────────────────────────────────────────
# Contrast Enhancement
# ──────────────────────────────────────────────────────────────────────────────

def apply_clahe(image: np.ndarray, clip_limit: float = 3.0,
                grid_size: Tuple[int, int] = (8, 8)) -> np.ndarray:
    """Enhance local contrast with CLAHE.

    Contrast-Limited Adaptive Histogram Equalization divides the image into
    tiles and equalizes each tile's histogram independently, with a clip
    limit to prevent over-amplification of noise.  Tile mappings are
    blended bilinearly so no block boundaries are visible.

    Parameters
    ----------
    image : np.ndarray
        Grayscale image (H, W), dtype uint8.
    clip_limit : float
        Bin ceiling as a multiple of the mean bin count.
    grid_size : tuple of int
        Number of tiles in each dimension.

    Returns
    -------
    np.ndarray
        Contrast-enhanced image, same shape and dtype.
    """
    image = ensure_single_channel(image, "apply_clahe")
    clahe = cv2.createCLAHE(clipLimit=float(clip_limit),
                            tileGridSize=tuple(int(g) for g in grid_size))
    return clahe.apply(image)


class ContrastEnhancer:
    """Adaptive local contrast equalization of a single intensity channel.

    Holds only the equalization parameters.  The OpenCV CLAHE object keeps
    scratch buffers between ``apply`` calls, so a new one is created on
    every call and a single enhancer may be shared freely.
    """

    def __init__(self, clip_limit: float = 3.0,
                 grid_size: Tuple[int, int] = (8, 8)):
        self.clip_limit = float(clip_limit)
        self.grid_size = tuple(grid_size)

    def enhance(self, channel: np.ndarray,
                clip_limit: Optional[float] = None) -> np.ndarray:
        """Equalize ``channel``; ``clip_limit`` overrides the instance value."""
        limit = self.clip_limit if clip_limit is None else clip_limit
        return apply_clahe(channel, limit, self.grid_size)

    def __repr__(self):
        return (f"{type(self).__name__}(clip_limit={self.clip_limit}, "
                f"grid_size={self.grid_size})")


# ──────────────────────────────────────────────────────────────────────────────
# Noise Filtering
# ──────────────────────────────────────────────────────────────────────────────

def median_denoise(image: np.ndarray, ksize: int = 3) -> np.ndarray:
    """Suppress impulse (salt-and-pepper) noise with a median filter.

    Parameters
    ----------
    image : np.ndarray
        Grayscale image (H, W).
    ksize : int
        Kernel size (must be odd and ≥ 1).
    """
    image = ensure_single_channel(image, "median_denoise")
    if ksize < 3:
        return image.copy()  # ksize=1 is a no-op
    return cv2.medianBlur(image, ksize)
