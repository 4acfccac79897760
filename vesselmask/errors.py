# -*- coding: utf-8 -*-
"""
errors.py — Exception Types
============================
"""


class VesselMaskError(Exception):
    """Base class for every error raised by the extraction pipeline."""


class InvalidInputError(VesselMaskError, ValueError):
    """Image is empty, zero-sized, or has the wrong channel count or dtype."""


class ConfigurationError(VesselMaskError, ValueError):
    """Extractor configuration violates one of its invariants."""
