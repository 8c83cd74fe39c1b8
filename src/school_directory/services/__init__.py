"""
School directory service layer.

Provides the add pipeline and the filtered read queries on top of the
database executor and the image store.
"""

from .school_service import SchoolService, build_school_query, failure_response

__all__ = ['SchoolService', 'build_school_query', 'failure_response']
