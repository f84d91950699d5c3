"""Synapse legal document analyzer backend."""

__version__ = "0.1.0"
