"""Coordinate calibration engine: scale, letterbox geometry, mode, transform, render."""
