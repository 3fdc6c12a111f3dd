"""
Error taxonomy shared by the inference, overlay and classifier layers.
"""

from __future__ import annotations


class VisionError(Exception):
    """Base class for errors raised by this project."""


class ModelUnavailable(VisionError):
    """A model could not be loaded or initialised. Fatal to that feature."""


class InferenceFailure(VisionError):
    """A single inference call failed. The scheduler skips the cycle."""


class GeometryUnavailable(VisionError):
    """Source or container dimensions are not known yet."""


class VectorReleasedError(VisionError):
    """A feature vector was used or released after it was released."""
