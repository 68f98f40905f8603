"""
FastAPI service for NewsForge.

Provides REST API for:
- POST /runs/fetch - Fetch all active sources of a user
- GET /runs/{id}, /runs/{id}/items - Inspect runs and collected headlines
- /sources - Manage a user's sources
- GET /ai/models, POST /ai/generate - Routed AI generation
- WS /ws/progress - Live fetch progress
- GET /health - Service health check
"""

from newsforge.api.app import create_app

__all__ = ["create_app"]
