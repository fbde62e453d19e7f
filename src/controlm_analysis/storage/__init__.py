"""
Storage Module

SQLite catalog of parsed Control-M jobs: schema, ingest and query access.
"""

from .schema import SCHEMA_SQL, connect
from .catalog_store import CatalogStore
from .job_repository import JobRepository, JobSearchRequest, strip_condition_suffix

__all__ = [
    'SCHEMA_SQL',
    'connect',
    'CatalogStore',
    'JobRepository',
    'JobSearchRequest',
    'strip_condition_suffix',
]
