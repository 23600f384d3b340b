"""
Pytest configuration and fixtures for test suite.

This module:
- Skips tests requiring external services (Pinecone, model downloads)
- Provides in-memory collaborators for the ranking pipeline
"""

import os
from dataclasses import dataclass
from typing import Dict, List

import pytest

from volam.services.embedding.model import EmbeddingResult
from volam.services.vdb.base import VectorDocument
from volam.services.vdb.flat_index import FlatVectorIndex

# Detect CI environment
IS_CI = os.environ.get("CI") or os.environ.get("GITHUB_ACTIONS") or os.environ.get("GITLAB_CI")


def is_pinecone_available():
    """Check if Pinecone API key is configured."""
    return bool(os.environ.get("PINECONE_API_KEY")) and bool(os.environ.get("PINECONE_INDEX_NAME"))


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "pinecone_required: mark test as requiring Pinecone API")
    config.addinivalue_line("markers", "model_download: mark test as downloading a sentence-transformers model")


def pytest_collection_modifyitems(config, items):
    """Automatically skip tests based on environment."""
    for item in items:
        if "pinecone_required" in item.keywords and not is_pinecone_available():
            item.add_marker(pytest.mark.skip(reason="Pinecone API key not configured"))

        if "model_download" in item.keywords and (IS_CI or not os.environ.get("RUN_MODEL_TESTS")):
            item.add_marker(pytest.mark.skip(reason="Model download tests disabled (set RUN_MODEL_TESTS=1)"))


@dataclass
class KeywordEmbedder:
    """
    Deterministic bag-of-keywords embedder: one dimension per vocabulary word.
    """

    vocabulary: List[str]
    calls: int = 0

    @property
    def dimensions(self) -> int:
        return len(self.vocabulary)

    def embed(self, text: str) -> EmbeddingResult:
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        self.calls += 1
        lowered = text.lower()
        vector = [1.0 if word in lowered else 0.0 for word in self.vocabulary]
        if not any(vector):
            vector[0] = 0.01
        return EmbeddingResult(embedding=vector, tokens=len(text.split()))

    async def embed_async(self, text: str) -> EmbeddingResult:
        return self.embed(text)


VOCABULARY = ["climate", "emissions", "policy", "community", "health", "energy", "solar", "ai"]

CORPUS: Dict[str, str] = {
    "climate-1": "Climate change is driven by emissions. Affected communities face the highest risk.",
    "climate-2": "Government policy on climate emissions shapes regulation for the public.",
    "energy-1": "Solar energy is a renewable source of power for every community.",
    "health-1": "Doctors and nurses report that climate change harms patient health.",
    "ai-1": "AI systems are built by researchers and software engineers.",
}


@pytest.fixture
def embedder():
    return KeywordEmbedder(vocabulary=list(VOCABULARY))


@pytest.fixture
def flat_index(embedder):
    index = FlatVectorIndex(embedder.dimensions, index_path=None)
    index.add_documents(
        [
            VectorDocument(
                id=doc_id,
                content=content,
                embedding=embedder.embed(content).embedding,
                metadata={"source": f"{doc_id}.md", "domain": doc_id.split("-")[0], "chunk_index": 0},
            )
            for doc_id, content in CORPUS.items()
        ]
    )
    return index
