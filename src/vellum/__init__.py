"""Vellum language server package root."""

import logging

from vellum.exceptions import NeverRaise, NeverThrown
from vellum.invariants import never

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ["__version__", "NeverRaise", "NeverThrown", "never"]

__version__ = "0.1.0"
