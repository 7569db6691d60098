"""
Ingestion — document loading, chunking, and embedding.

This module turns a raw uploaded file (PDF, DOCX, TXT) into ordered,
embedded chunks.  Persistence of those chunks is orchestrated by
:mod:`athena_rag.pipeline.ingest`.
"""
