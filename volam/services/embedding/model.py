import asyncio
import sys
from dataclasses import dataclass
from typing import List, Optional

from sentence_transformers import SentenceTransformer

from volam.constants.config import EMBEDDING_MODEL_NAME_PROD, EMBEDDING_MODEL_NAME_TEST
from volam.core.config import settings
from volam.core.logger import get_logger

logger = get_logger(__name__)

_model: Optional[SentenceTransformer] = None


@dataclass
class EmbeddingResult:
    embedding: List[float]
    tokens: int


def _is_test_environment() -> bool:
    """
    Detect if we're running in a test environment.
    Checks for pytest in the module stack.
    """
    return "pytest" in sys.modules


def get_embedding_model() -> SentenceTransformer:
    """
    Lazy init the embedding model.
    Loads once and reuses for all requests.
    Uses lightweight model for testing, production model otherwise.
    Can be overridden with the EMBEDDING_MODEL setting.
    """
    global _model
    if _model is None:
        model_name = settings.EMBEDDING_MODEL
        if not model_name:
            model_name = EMBEDDING_MODEL_NAME_TEST if _is_test_environment() else EMBEDDING_MODEL_NAME_PROD
        logger.info(f"Loading embedding model: {model_name}")
        _model = SentenceTransformer(model_name)
        logger.info("Embedding model loaded successfully")
    return _model


class EmbeddingProvider:
    """
    Turns text into normalized sentence-transformers vectors.

    Token counts come from the model tokenizer when available and fall back
    to a ~4 characters per token estimate.
    """

    def __init__(self, model: Optional[SentenceTransformer] = None):
        self._model = model

    @property
    def model(self) -> SentenceTransformer:
        if self._model is None:
            self._model = get_embedding_model()
        return self._model

    @property
    def dimensions(self) -> int:
        return int(self.model.get_sentence_embedding_dimension())

    def _count_tokens(self, text: str) -> int:
        tokenizer = getattr(self.model, "tokenizer", None)
        if tokenizer is not None:
            try:
                return len(tokenizer.tokenize(text))
            except Exception:
                logger.debug("[EmbeddingProvider] Tokenizer failed, using character estimate")
        return estimate_tokens(text)

    def embed(self, text: str) -> EmbeddingResult:
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        try:
            vectors = self.model.encode([text], normalize_embeddings=True)
        except Exception as e:
            logger.error(f"[EmbeddingProvider] Error generating embedding: {e}")
            raise RuntimeError(f"Failed to generate embedding: {e}") from e

        return EmbeddingResult(embedding=[float(x) for x in vectors[0]], tokens=self._count_tokens(text))

    def embed_batch(self, texts: List[str]) -> List[EmbeddingResult]:
        if not texts:
            return []

        valid = [t for t in texts if t and t.strip()]
        if not valid:
            raise ValueError("No valid texts provided")

        try:
            vectors = self.model.encode(valid, normalize_embeddings=True)
        except Exception as e:
            logger.error(f"[EmbeddingProvider] Error generating batch embeddings: {e}")
            raise RuntimeError(f"Failed to generate batch embeddings: {e}") from e

        return [
            EmbeddingResult(embedding=[float(x) for x in vec], tokens=self._count_tokens(text))
            for text, vec in zip(valid, vectors)
        ]

    async def embed_async(self, text: str) -> EmbeddingResult:
        """
        Async wrapper for embedding generation.
        Runs CPU-bound encoding off the main event loop.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.embed, text)

    async def embed_batch_async(self, texts: List[str]) -> List[EmbeddingResult]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.embed_batch, texts)


def estimate_tokens(text: str) -> int:
    # rough approximation: 1 token ~ 4 characters of English text
    return (len(text) + 3) // 4
