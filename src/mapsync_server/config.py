"""Configuration management using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "MAPSYNC"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Controller protocol
    message_namespace: str = ""          # e.g. "leaflet" -> "leaflet/map/view"
    view_debounce_ms: int = 200          # quiet period before onDidChangeView
    legend_placeholder: str = "Légende"  # legend text until the first update

    # Queues
    outbound_queue_size: int = 100       # per controller connection
    surface_buffer_size: int = 1000      # pending render commands per surface connection


settings = Settings()
