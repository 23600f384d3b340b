from unittest.mock import MagicMock

import numpy as np
import pytest

from volam.services.embedding.model import EmbeddingProvider, estimate_tokens


@pytest.fixture
def model():
    mock = MagicMock()
    mock.encode.side_effect = lambda texts, normalize_embeddings: np.ones((len(texts), 4), dtype=np.float32) * 0.5
    mock.tokenizer.tokenize.side_effect = lambda text: text.split()
    mock.get_sentence_embedding_dimension.return_value = 4
    return mock


def test_embed_returns_vector_and_tokens(model):
    result = EmbeddingProvider(model).embed("climate change impacts")

    assert result.embedding == [0.5, 0.5, 0.5, 0.5]
    assert result.tokens == 3
    assert model.encode.call_args.kwargs["normalize_embeddings"] is True


def test_dimensions_from_model(model):
    assert EmbeddingProvider(model).dimensions == 4


@pytest.mark.parametrize("text", ["", "   "])
def test_embed_rejects_empty_text(model, text):
    with pytest.raises(ValueError):
        EmbeddingProvider(model).embed(text)
    model.encode.assert_not_called()


def test_embed_wraps_model_errors(model):
    model.encode.side_effect = RuntimeError("CUDA out of memory")

    with pytest.raises(RuntimeError, match="Failed to generate embedding"):
        EmbeddingProvider(model).embed("text")


def test_token_count_falls_back_to_estimate(model):
    model.tokenizer.tokenize.side_effect = Exception("no tokenizer")
    assert EmbeddingProvider(model).embed("abcdefgh").tokens == estimate_tokens("abcdefgh") == 2


def test_embed_batch_skips_empty_texts(model):
    provider = EmbeddingProvider(model)

    results = provider.embed_batch(["first text", "", "second"])

    assert len(results) == 2
    assert [r.tokens for r in results] == [2, 1]
    assert provider.embed_batch([]) == []
    with pytest.raises(ValueError):
        provider.embed_batch(["", "  "])


@pytest.mark.asyncio
async def test_embed_async(model):
    result = await EmbeddingProvider(model).embed_async("async embedding works")
    assert len(result.embedding) == 4


@pytest.mark.asyncio
async def test_embed_batch_async(model):
    results = await EmbeddingProvider(model).embed_batch_async(["one", "two"])
    assert len(results) == 2


@pytest.mark.model_download
def test_real_model_embedding():
    provider = EmbeddingProvider()
    result = provider.embed("Renewable energy reduces emissions")

    assert len(result.embedding) == provider.dimensions
    assert abs(float(np.linalg.norm(result.embedding)) - 1.0) < 1e-3  # nosec
