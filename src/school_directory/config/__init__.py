"""
Configuration management for the school directory.

Contains Pydantic settings and the helpers that pick the database and
image storage backends from what is configured.
"""
