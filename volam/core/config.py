from typing import ClassVar, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    LOG_LEVEL: str = Field(default="INFO", description="Level for volam.* loggers")

    # Embedding provider
    EMBEDDING_MODEL: Optional[str] = Field(default=None, description="Override for the sentence-transformers model")

    # Vector index
    VECTOR_BACKEND: str = Field(default="flat", description="Vector index backend: 'flat' or 'pinecone'")
    VECTOR_INDEX_PATH: str = Field(default="data/embeddings/flat.index", description="Flat index persistence path")
    VECTOR_DIMENSIONS: int = Field(default=384, description="Embedding dimension for the flat index")

    PINECONE_API_KEY: Optional[str] = Field(default=None)
    PINECONE_INDEX_NAME: Optional[str] = Field(default=None)
    PINECONE_NAMESPACE: str = Field(default="volam", description="Pinecone namespace for evidence chunks")

    # Empathy profiles
    EMPATHY_PROFILES_PATH: str = Field(
        default="data/profiles/empathy-profiles.json", description="JSON file with named stakeholder profiles"
    )

    # Ranking defaults
    DEFAULT_MODE: Literal["baseline", "volam"] = Field(default="baseline")
    DEFAULT_TOP_K: int = Field(default=5, description="Evidence items returned per query")
    VOLAM_ALPHA: float = Field(default=0.6, description="Weight for cosine similarity")
    VOLAM_BETA: float = Field(default=0.3, description="Weight for certainty (1 - nullness)")
    VOLAM_GAMMA: float = Field(default=0.1, description="Weight for empathy fit")

    # Nullness updates
    NULLNESS_K: float = Field(default=0.1, description="Learning rate for explicit nullness updates")
    NULLNESS_LAMBDA: float = Field(default=0.9, description="Per-hour decay base for explicit nullness updates")

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
