"""Data ingestion module for BIMSched.

Imports room schedule exports into the standalone document store.
"""

from bimsched.ingestion.rooms import ingest_rooms

__all__ = ["ingest_rooms"]
