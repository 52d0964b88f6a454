"""API Package.

FastAPI server for DSS Lite.
"""

from api.server import create_app, app

__all__ = [
    "create_app",
    "app",
]
