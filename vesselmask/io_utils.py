# -*- coding: utf-8 -*-
"""
io_utils.py — Image Reading, Writing and In-Memory Encoding
============================================================

Thin wrappers around OpenCV codecs.  The extraction pipeline itself never
touches the filesystem; callers use these helpers at its boundary.
"""

import os

import cv2
import numpy as np

from .preprocessing import ensure_single_channel


def read_color_image(path: str) -> np.ndarray:
    """Read an image from disk as an 8-bit BGR array ``(H, W, 3)``."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Input image does not exist: {path}")
    img = cv2.imread(path, cv2.IMREAD_COLOR)
    if img is None:
        raise FileNotFoundError(f"Cannot decode image: {path}")
    return img


def read_mask(path: str) -> np.ndarray:
    """Read a grayscale mask from disk."""
    mask = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
    if mask is None:
        raise FileNotFoundError(f"Cannot read mask: {path}")
    return mask


def write_image(path: str, image: np.ndarray) -> None:
    """Write ``image`` to ``path``; the format follows the file extension."""
    if not cv2.imwrite(path, image) or not os.path.isfile(path):
        raise OSError(f"Failed to write {path}")


def encode_mask(mask: np.ndarray, ext: str = ".png") -> bytes:
    """Encode a single-channel mask in memory (lossless for ``.png``)."""
    mask = ensure_single_channel(mask, "encode_mask")
    ok, buf = cv2.imencode(ext, mask)
    if not ok:
        raise OSError(f"Failed to encode mask as {ext}")
    return buf.tobytes()


def decode_mask(data: bytes) -> np.ndarray:
    """Decode bytes produced by :func:`encode_mask` back into ``(H, W)`` uint8."""
    mask = cv2.imdecode(np.frombuffer(data, dtype=np.uint8),
                        cv2.IMREAD_GRAYSCALE)
    if mask is None:
        raise ValueError("Cannot decode mask bytes")
    return mask
