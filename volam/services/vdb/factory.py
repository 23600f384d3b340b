"""
Vector Index Factory

Selects a vector index backend at construction time. Unsupported backends
fail fast instead of being substituted.
"""

from typing import Optional

from volam.constants.config import VECTOR_BACKENDS
from volam.core.config import settings
from volam.core.logger import get_logger
from volam.services.vdb.base import VectorIndex

logger = get_logger(__name__)


def create_vector_index(
    backend: Optional[str] = None,
    dimensions: Optional[int] = None,
    index_path: Optional[str] = None,
    namespace: Optional[str] = None,
) -> VectorIndex:
    backend = (backend or settings.VECTOR_BACKEND).strip().lower()
    dimensions = int(dimensions or settings.VECTOR_DIMENSIONS)

    if backend not in VECTOR_BACKENDS:
        raise ValueError(f"Unsupported vector store backend: {backend}")

    if backend == "flat":
        from volam.services.vdb.flat_index import FlatVectorIndex

        index: VectorIndex = FlatVectorIndex(dimensions, index_path=index_path or settings.VECTOR_INDEX_PATH)
    else:
        from volam.services.vdb.pinecone_index import PineconeVectorIndex

        index = PineconeVectorIndex(dimensions, namespace=namespace)

    logger.info(f"[VectorIndex Factory] {backend} index initialized (dimensions={dimensions})")
    return index
