"""Retrieval client — ChromaDB passage index and per-textbook search."""

import logging

import chromadb
from chromadb.utils import embedding_functions

from textbook_qa.config import RetrievalConfig
from textbook_qa.errors import RetrievalError
from textbook_qa.models import Chunk, RetrievedPassage

logger = logging.getLogger(__name__)

# Module-level cache to avoid re-creating the embedding function repeatedly.
_embedding_fn_cache: dict[str, object] = {}


def get_client(config: RetrievalConfig | None = None) -> chromadb.PersistentClient:
    """Return a ChromaDB persistent client for the configured path."""
    cfg = config or RetrievalConfig()
    return chromadb.PersistentClient(path=cfg.db_path)


def get_embedding_function(
    model_name: str = "all-MiniLM-L6-v2",
) -> embedding_functions.SentenceTransformerEmbeddingFunction:
    """Return a cached SentenceTransformer embedding function.

    Embeddings are computed by ChromaDB through this function; the model is
    loaded once per model name.
    """
    if model_name not in _embedding_fn_cache:
        _embedding_fn_cache[model_name] = (
            embedding_functions.SentenceTransformerEmbeddingFunction(
                model_name=model_name,
            )
        )
    return _embedding_fn_cache[model_name]  # type: ignore[return-value]


def get_or_create_collection(
    client: chromadb.PersistentClient,
    config: RetrievalConfig | None = None,
) -> chromadb.Collection:
    """Get or create the passage collection with cosine similarity."""
    cfg = config or RetrievalConfig()
    ef = get_embedding_function(cfg.embedding_model)
    return client.get_or_create_collection(
        name=cfg.collection_name,
        embedding_function=ef,
        metadata={"hnsw:space": "cosine"},
    )


def _chunk_id(metadata: dict) -> str:
    return (
        f"{metadata['document_id']}"
        f":p{metadata['page_number']}"
        f":c{metadata['chunk_index']}"
    )


def add_chunks(
    collection: chromadb.Collection,
    chunks: list[Chunk],
    batch_size: int = 100,
) -> int:
    """Upsert textbook chunks into the collection in batches.

    Chunk IDs are derived from document id, page number and chunk index, so
    re-ingesting the same textbook replaces its passages instead of
    duplicating them.

    Args:
        collection: The target ChromaDB collection.
        chunks: Chunks whose metadata holds ``document_id``, ``page_number``
            and ``chunk_index`` (``section`` is optional).
        batch_size: Maximum number of chunks per upsert call.

    Returns:
        Number of chunks written (0 if the list is empty).
    """
    if not chunks:
        return 0

    ids = [_chunk_id(c.metadata) for c in chunks]
    texts = [c.text for c in chunks]
    # ChromaDB rejects None metadata values.
    metadatas = [
        {k: v for k, v in c.metadata.items() if v is not None} for c in chunks
    ]

    for start in range(0, len(chunks), batch_size):
        end = start + batch_size
        collection.upsert(
            documents=texts[start:end],
            metadatas=metadatas[start:end],
            ids=ids[start:end],
        )

    logger.info("Indexed %d chunks.", len(chunks))
    return len(chunks)


def _parse_results(results: dict) -> list[RetrievedPassage]:
    """Convert a raw ChromaDB query result into retrieved passages.

    Cosine distances become similarities (``1 - distance``) clamped to
    [0, 1]. When the backend returns no distances the similarity is left
    unset.
    """
    documents = (results.get("documents") or [[]])[0]
    metadatas = (results.get("metadatas") or [[]])[0] or [None] * len(documents)
    distances = (results.get("distances") or [[]])[0] or [None] * len(documents)

    passages: list[RetrievedPassage] = []
    for doc, meta, dist in zip(documents, metadatas, distances):
        meta = meta or {}
        similarity = None
        if dist is not None:
            similarity = round(min(max(1 - dist, 0.0), 1.0), 4)
        passages.append(
            RetrievedPassage(
                content=doc,
                page_number=int(meta.get("page_number", 0)),
                section=meta.get("section"),
                similarity=similarity,
            )
        )
    return passages


def search(
    collection: chromadb.Collection,
    query: str,
    document_id: str,
    top_k: int = 5,
) -> list[RetrievedPassage]:
    """Return up to *top_k* passages of one textbook relevant to *query*.

    No ordering is promised to callers.

    Raises:
        RetrievalError: If the collection cannot be queried.
    """
    try:
        results = collection.query(
            query_texts=[query],
            n_results=top_k,
            where={"document_id": document_id},
        )
    except Exception as exc:
        raise RetrievalError(f"search failed for document {document_id}") from exc

    passages = _parse_results(results)
    logger.debug(
        "Retrieved %d passages for document %s", len(passages), document_id
    )
    return passages


def delete_document(collection: chromadb.Collection, document_id: str) -> None:
    """Remove every indexed passage of one textbook."""
    collection.delete(where={"document_id": document_id})


def list_documents(collection: chromadb.Collection) -> dict[str, int]:
    """Return indexed textbook ids mapped to their passage counts."""
    if collection.count() == 0:
        return {}
    result = collection.get(include=["metadatas"])
    counts: dict[str, int] = {}
    for meta in result.get("metadatas") or []:
        doc_id = (meta or {}).get("document_id", "unknown")
        counts[doc_id] = counts.get(doc_id, 0) + 1
    return dict(sorted(counts.items()))
