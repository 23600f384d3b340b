from unittest.mock import MagicMock

import pytest

from volam.services.vdb import create_vector_index
from volam.services.vdb import pinecone_index as pinecone_module
from volam.services.vdb.base import VectorDocument
from volam.services.vdb.flat_index import FlatVectorIndex
from volam.services.vdb.pinecone_index import PineconeVectorIndex


def test_unsupported_backend_fails_fast():
    with pytest.raises(ValueError, match="Unsupported vector store backend: faiss"):
        create_vector_index("faiss", dimensions=3)


def test_flat_backend(tmp_path):
    index = create_vector_index("FLAT", dimensions=3, index_path=str(tmp_path / "flat.index"))

    assert isinstance(index, FlatVectorIndex)
    assert index.backend == "flat"
    assert index.dimensions == 3


def test_pinecone_backend_uses_managed_index(monkeypatch):
    managed = MagicMock()
    monkeypatch.setattr(pinecone_module, "get_pinecone_index", lambda dimension: managed)

    index = create_vector_index("pinecone", dimensions=3, namespace="tests")

    assert isinstance(index, PineconeVectorIndex)
    assert index.index is managed
    assert index.namespace == "tests"


@pytest.fixture
def pinecone_index():
    return PineconeVectorIndex(3, namespace="tests", index=MagicMock())


def test_pinecone_upsert_stores_content_in_metadata(pinecone_index):
    pinecone_index.add_documents(
        [VectorDocument(id="a", content="hello", embedding=[3.0, 4.0, 0.0], metadata={"source": "a.md"})]
    )

    kwargs = pinecone_index.index.upsert.call_args.kwargs
    vector = kwargs["vectors"][0]
    assert kwargs["namespace"] == "tests"
    assert vector["metadata"] == {"source": "a.md", "content": "hello"}
    assert vector["values"] == pytest.approx([0.6, 0.8, 0.0])


def test_pinecone_search_maps_matches(pinecone_index):
    pinecone_index.index.query.return_value = {
        "matches": [
            {"id": "a", "score": 0.91, "metadata": {"content": "hello", "source": "a.md"}},
            {"id": "b", "score": 0.42, "metadata": {"content": "world"}},
        ]
    }

    results = pinecone_index.search([1.0, 0.0, 0.0], 2)

    assert [r.document.id for r in results] == ["a", "b"]
    assert results[0].score == pytest.approx(0.91)
    assert results[0].document.content == "hello"
    assert results[0].document.metadata == {"source": "a.md"}
    assert pinecone_index.index.query.call_args.kwargs["top_k"] == 2


def test_pinecone_count_and_fetch(pinecone_index):
    pinecone_index.index.describe_index_stats.return_value = {"namespaces": {"tests": {"vector_count": 7}}}
    pinecone_index.index.fetch.return_value = {"vectors": {}}

    assert pinecone_index.count() == 7
    assert pinecone_index.get_document("missing") is None


@pytest.mark.pinecone_required
def test_pinecone_live_round_trip():
    index = create_vector_index("pinecone", dimensions=3, namespace="volam-tests")
    index.add_documents([VectorDocument(id="live-1", content="live", embedding=[1.0, 0.0, 0.0])])
    assert isinstance(index.search([1.0, 0.0, 0.0], 1), list)  # nosec
    index.clear()
