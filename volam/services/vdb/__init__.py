"""
Vector index backends: flat (in-process numpy) and pinecone (managed).
"""

from .base import SearchResult, VectorDocument, VectorIndex
from .factory import create_vector_index

__all__ = [
    "VectorIndex",
    "VectorDocument",
    "SearchResult",
    "create_vector_index",
]
