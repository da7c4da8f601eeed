"""
Transport Module - Black Box Interface

Purpose: Deliver session records to the Journey ingest service
Interface: post_session_header(), post_session(), post_session_flush()
Hidden: HTTP client, endpoint paths, response envelopes

Can be replaced with any delivery mechanism that accepts the same records.
"""

from .client import DEFAULT_INGEST_URL, IngestClient

__all__ = ["IngestClient", "DEFAULT_INGEST_URL"]
