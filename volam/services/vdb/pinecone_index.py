from typing import Any, List, Optional, Sequence

from pinecone import Pinecone, ServerlessSpec

from volam.core.config import settings
from volam.core.logger import get_logger
from volam.services.vdb.base import SearchResult, VectorDocument, VectorIndex, normalize_vector

logger = get_logger(__name__)

_pc: Optional[Pinecone] = None


def get_pinecone_client() -> Pinecone:
    global _pc
    if _pc is None:
        _pc = Pinecone(api_key=settings.PINECONE_API_KEY)
    return _pc


def get_pinecone_index(dimension: int, index_name: Optional[str] = None) -> Any:
    pc = get_pinecone_client()
    index_name = index_name or settings.PINECONE_INDEX_NAME
    assert index_name is not None, "PINECONE_INDEX_NAME must be set"  # nosec B101

    existing = [idx.name for idx in pc.list_indexes()]
    if index_name not in existing:
        pc.create_index(
            name=index_name, dimension=dimension, metric="cosine", spec=ServerlessSpec(cloud="aws", region="us-east-1")
        )

    return pc.Index(index_name)


class PineconeVectorIndex(VectorIndex):
    """
    Managed Pinecone index. Persistence is handled by the service, so
    save/load are no-ops.
    """

    backend = "pinecone"

    def __init__(self, dimensions: int, namespace: Optional[str] = None, index: Any = None):
        super().__init__(dimensions)
        self.namespace = namespace or settings.PINECONE_NAMESPACE
        self.index = index if index is not None else get_pinecone_index(self.dimensions)

    def add_documents(self, documents: List[VectorDocument]) -> None:
        if not documents:
            return

        vectors = []
        for doc in documents:
            self._check_dimensions(doc.embedding)
            vectors.append(
                {
                    "id": doc.id,
                    "values": normalize_vector(doc.embedding).tolist(),
                    "metadata": {**doc.metadata, "content": doc.content},
                }
            )

        logger.info(f"[PineconeVectorIndex] Upserting {len(vectors)} vectors into namespace={self.namespace}")
        self.index.upsert(vectors=vectors, namespace=self.namespace)

    def search(self, query_embedding: Sequence[float], k: int) -> List[SearchResult]:
        self._check_dimensions(query_embedding)
        response = self.index.query(
            vector=normalize_vector(query_embedding).tolist(),
            top_k=int(k),
            namespace=self.namespace,
            include_metadata=True,
            include_values=False,
        )

        matches = response.get("matches") or []
        return [SearchResult(document=self._to_document(m), score=float(m["score"])) for m in matches]

    def get_document(self, doc_id: str) -> Optional[VectorDocument]:
        response = self.index.fetch(ids=[doc_id], namespace=self.namespace)
        vectors = response.get("vectors") or {}
        record = vectors.get(doc_id)
        if record is None:
            return None
        return self._to_document(record)

    def count(self) -> int:
        stats = self.index.describe_index_stats()
        namespaces = stats.get("namespaces") or {}
        ns = namespaces.get(self.namespace) or {}
        return int(ns.get("vector_count", 0))

    def clear(self) -> None:
        self.index.delete(delete_all=True, namespace=self.namespace)
        logger.info(f"[PineconeVectorIndex] Cleared namespace={self.namespace}")

    def save(self) -> None:
        return None

    def load(self) -> None:
        return None

    def close(self) -> None:
        self.index = None

    @staticmethod
    def _to_document(record: Any) -> VectorDocument:
        metadata = dict(record.get("metadata") or {})
        content = str(metadata.pop("content", ""))
        return VectorDocument(
            id=str(record["id"]),
            content=content,
            embedding=list(record.get("values") or []),
            metadata=metadata,
        )
