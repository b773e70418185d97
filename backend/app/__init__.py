"""
Tubely Backend Application Package

This package contains the Tubely FastAPI application that accepts video
uploads for existing video records. An upload is:

- Authenticated with a bearer JWT and checked against the record's owner
- Staged to a temporary file and probed with ffprobe for its aspect ratio
- Remuxed with ffmpeg so playback can start before the download finishes
- Stored in S3 under landscape/, portrait/ or other/
- Linked to its video record in MongoDB

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (auth, database)
- models/: Pydantic data models
- services/: Upload pipeline stages
- utils/: Logging and validation helpers
"""

__version__ = "1.0.0"
__app_name__ = "Tubely"
