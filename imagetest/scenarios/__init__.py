"""
The scenario set.

Importing this package registers every scenario with `suite` in
declaration order; that order is the execution order.
"""

from .registry import suite

from . import console  # noqa: F401
from . import web  # noqa: F401
from . import build_config  # noqa: F401
from . import ambiguous  # noqa: F401
from . import split_build  # noqa: F401
from . import dev_mode  # noqa: F401
from . import image  # noqa: F401
from . import remote  # noqa: F401

__all__ = ["suite"]
