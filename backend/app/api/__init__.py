"""
Tubely API Package.

Package Structure:
    - v1/: Version 1 API endpoints
        - video_upload.py: Video file upload endpoint

Endpoints are versioned under the /api/v1 URL prefix.
"""
