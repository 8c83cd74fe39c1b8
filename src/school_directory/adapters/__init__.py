"""
Adapter layer for the school directory.

Contains the image storage abstraction with local filesystem and S3 implementations.
"""
