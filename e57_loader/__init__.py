"""Mini README: Package initialiser for the E57 → Rerun loader.

The loader streams E57 scans to the Rerun viewer. ``export`` holds the
scan selection and chunked streaming logic, ``source`` the E57 reader and
``configuration`` the environment-driven settings.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
