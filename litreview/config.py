"""litreview configuration — loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "LITREVIEW_", "env_file": ".env", "extra": "ignore"}

    # LLM API keys
    anthropic_api_key: str = ""
    perplexity_api_key: str = ""

    # Models
    chat_model: str = "claude-3-7-sonnet-20250219"
    search_model: str = "sonar-pro"
    deep_research_model: str = "sonar-deep-research"

    # Timeouts (seconds). Deep research can run for several minutes.
    chat_timeout: float = 300.0
    research_timeout: float = 600.0

    # Default source allow-list for the search provider
    search_domains: list[str] = [
        "ncbi.nlm.nih.gov",
        "scholar.google.com",
        "sciencedirect.com",
    ]

    # Storage (in-memory unless overridden)
    database_path: str = ":memory:"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: str = "http://localhost:5173"
    log_level: str = "INFO"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
