"""Evexia - patient-controlled medical record sharing."""

__version__ = "0.1.0"
