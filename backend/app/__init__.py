"""
Clipstream Backend Application Package

FastAPI service that ingests user-uploaded videos, remuxes them for fast-start
playback, stores them in S3-compatible object storage under aspect-routed keys
and hands out time-limited URLs on read.

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (database, auth, middleware)
- models/: Pydantic data models
- services/: Upload pipeline, media tools, storage and metadata store
- utils/: Validation, key generation, aspect classification, logging
"""

__version__ = "1.0.0"
__app_name__ = "Clipstream"
