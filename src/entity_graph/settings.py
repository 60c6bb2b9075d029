from __future__ import annotations

from pydantic import Field

try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except Exception as e:  # pragma: no cover
    raise RuntimeError(
        "pydantic-settings is required. Install with: pip install pydantic-settings"
    ) from e


class EntityGraphSettings(BaseSettings):
    """Unified configuration.

    Environment variables are prefixed with ENTITY_GRAPH_ (a local .env is read too).
    """

    model_config = SettingsConfigDict(env_prefix="ENTITY_GRAPH_", env_file=".env", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- Remote services ---
    api_key: str | None = Field(default=None, description="Sent as `apikey` in every request body")
    base_url: str = Field(default="https://c3ntrala.ag3nts.org", description="Report service root")
    people_url: str = Field(default="https://c3ntrala.ag3nts.org/people")
    places_url: str = Field(default="https://c3ntrala.ag3nts.org/places")
    database_url: str = Field(default="https://c3ntrala.ag3nts.org/apidb")
    note_url: str = Field(default="https://c3ntrala.ag3nts.org/dane/barbara.txt")
    oracle_timeout_s: float = 15.0
    database_timeout_s: float = 20.0

    # --- Discovery ---
    max_iterations: int = Field(default=300, ge=1)
    min_person_len: int = Field(default=4, ge=1)

    # --- Graph DB (Neo4j) ---
    neo4j_uri: str | None = None
    neo4j_user: str = "neo4j"
    neo4j_password: str = "neo4j"
    neo4j_database: str = "neo4j"
    neo4j_ready_timeout_s: float = 60.0
    neo4j_max_hops: int = 20

    # --- Snapshot cache ---
    cache_dir: str | None = Field(default=None, description="If set, persist users/connections snapshots")


settings = EntityGraphSettings()
