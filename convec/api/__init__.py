"""
API module for Convec.

FastAPI server exposing the background removal and vectorization
pipelines over HTTP.
"""

from convec.api.server import app, create_app

__all__ = ["app", "create_app"]
