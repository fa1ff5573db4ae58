"""
Retrieval configuration settings.

Similarity search backend, thresholds, query cache sizing and the fixed
answers returned to the conversation layer.

Dependencies: pydantic, pydantic_settings
System role: Retrieval and query cache configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrievalSettings(BaseSettings):
    """Retrieval configuration (local cosine search for dev, SQL function for prod)."""

    model_config = SettingsConfigDict(
        env_prefix="RETRIEVAL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    match_backend: str = Field(
        default="postgres",
        description="Similarity backend: 'postgres' (match_documents RPC) or 'local'",
    )
    match_function: str = Field(
        default="match_documents_with_metadata",
        description="Name of the SQL similarity function",
    )

    top_k: int = Field(default=3, description="Number of chunks to concatenate per answer")
    max_top_k: int = Field(default=50, ge=1, le=100, description="Upper bound for a requested result count")
    match_threshold: float = Field(
        default=0.7,
        description="Minimum similarity for query results (0.0-1.0)",
    )
    enrich_threshold: float = Field(
        default=0.6,
        description="Lower similarity threshold used for value enrichment lookups",
    )

    cache_ttl_seconds: int = Field(default=86400, description="Query cache TTL (24 hours)")
    cache_capacity: int = Field(default=100, description="Maximum cached answers")

    result_separator: str = Field(
        default="\n\n---\n\n",
        description="Separator between concatenated chunk contents",
    )
    no_information_text: str = Field(
        default="Ich habe dazu keine spezifischen Informationen in meinen Dokumenten.",
        description="Answer when no chunk passes the similarity threshold",
    )
    fallback_text: str = Field(
        default="Entschuldigung, ich konnte deine Frage momentan nicht beantworten.",
        description="Answer when embedding or search fails",
    )
