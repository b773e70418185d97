"""
Services module for the Tubely backend application.

One service per stage of the upload pipeline:

- upload_service: Orchestrates an upload and stages the body to disk
- metadata_service: ffprobe wrapper and aspect-ratio classification
- processing_service: ffmpeg fast-start remux
- storage_service: S3 put and public URLs
- video_service: Video record persistence

Services are wired through FastAPI's dependency system in the API layer.
"""
