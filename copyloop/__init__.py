"""CopyLoop: content rating and style-learning backend."""

__version__ = "1.0.0"
