"""Bounding-box coordinate calibration for model-annotated homework images."""

__version__ = "0.3.0"
