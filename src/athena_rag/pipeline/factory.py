"""Explicit construction and teardown of the pipeline's collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from athena_rag.config import Settings, settings
from athena_rag.generation.generator import AnswerGenerator
from athena_rag.ingestion.embedder import EmbeddingGateway
from athena_rag.pipeline.ingest import IngestionPipeline
from athena_rag.pipeline.query import QueryPipeline
from athena_rag.retrieval.base import VectorIndexBase
from athena_rag.storage.store import MetadataStore

logger = logging.getLogger(__name__)


@dataclass
class RAGServices:
    """Everything a request handler needs, built once per process."""

    store: MetadataStore
    index: VectorIndexBase
    ingestion: IngestionPipeline
    query: QueryPipeline

    def close(self) -> None:
        """Release pooled database connections."""
        self.store.close()


def assemble_services(
    store: MetadataStore,
    index: VectorIndexBase,
    embedder: EmbeddingGateway,
    generator: AnswerGenerator,
    config: Settings = settings,
) -> RAGServices:
    """Wire pre-built gateways into both pipelines."""
    ingestion = IngestionPipeline(
        store,
        index,
        embedder,
        collection_name=config.chroma_collection,
        chunk_size=config.chunk_size,
        chunk_overlap=config.chunk_overlap,
        max_retries=config.embedding_max_retries,
        retry_backoff=config.embedding_retry_backoff,
    )
    query = QueryPipeline(
        store,
        index,
        embedder,
        generator,
        collection_name=config.chroma_collection,
        top_k=config.retrieval_top_k,
    )
    return RAGServices(store=store, index=index, ingestion=ingestion, query=query)


def build_services(config: Settings = settings) -> RAGServices:
    """Build production gateways from *config* and wire them together."""
    from athena_rag.generation.llm import get_llm
    from athena_rag.ingestion.embedder import get_embedding_function
    from athena_rag.retrieval.chroma_store import ChromaVectorIndex

    store = MetadataStore.from_url(config.database_url, echo=config.database_echo)
    store.create_schema()
    index = ChromaVectorIndex(host=config.chroma_host, port=config.chroma_port)
    embedder = EmbeddingGateway(
        get_embedding_function(config.embedding_model),
        batch_size=config.embedding_batch_size,
    )
    generator = AnswerGenerator(get_llm(config), model_name=config.llm_model_name)
    logger.info(
        "Services ready (collection=%s, embedding=%s, llm=%s)",
        config.chroma_collection,
        config.embedding_model,
        config.llm_model_name,
    )
    return assemble_services(store, index, embedder, generator, config)
