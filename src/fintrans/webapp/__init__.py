"""fintrans web application package.

Import ``fintrans.webapp:app`` for ``uvicorn`` deployments.
"""
from __future__ import annotations

from .application import *  # noqa: F401,F403
from .application import __all__ as _application_all
from .persistence import *  # noqa: F401,F403
from .persistence import __all__ as _persistence_all

__all__ = [*_application_all, *_persistence_all]
