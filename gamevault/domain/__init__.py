"""Domain layer for Gamevault.

Pure models that do not concern infrastructure or interface details.
"""

from . import models

__all__ = ["models"]
