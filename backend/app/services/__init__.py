"""
Services module for the Clipstream backend application.

- upload_service: Video ingestion and publish pipeline
- thumbnail_service: Thumbnail write-through path
- media_service: ffprobe/ffmpeg adapters behind prober/remuxer capabilities
- storage_service: S3-compatible storage operations with MinIO/AWS S3
- signing_service: Read-time presigned URL signing for video records
- video_store: MongoDB-backed metadata store for video records
"""
