"""
Clipstream API Package.

Package Structure:
    - v1/: Version 1 API endpoints
        - videos.py: Video records, video upload and thumbnail upload

All endpoints are served under the /api/v1 URL prefix.
"""
