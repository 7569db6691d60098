"""
Serving — FastAPI application for ingestion and querying.

This module is a thin HTTP shell around :mod:`athena_rag.pipeline`; it
holds no pipeline logic of its own.
"""
