"""
VIS site functions API.

Public exports:
- create_app: FastAPI factory
- app: default global FastAPI instance (for `uvicorn vis_site.api:app`)
"""

from __future__ import annotations

from vis_site.api.app import app, create_app

__all__ = ["app", "create_app"]
