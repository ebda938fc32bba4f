"""Services package - external collaborators (storage, feeds)."""

__all__ = ["Database", "TapClient", "TapError"]

from .storage import Database
from .tap import TapClient, TapError
