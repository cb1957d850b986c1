"""Replay short video windows around vocabulary markers until they are known."""

__version__ = "0.1.0"
