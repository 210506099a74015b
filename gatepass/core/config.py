from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "MyGate API"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    # Database (Postgres via asyncpg in production or SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./gatepass_dev.db",
        alias="DATABASE_URL",
    )
    auto_create_tables: bool = Field(
        default=True, alias="AUTO_CREATE_TABLES",
    )  # Use Alembic instead outside of local dev

    # Auth sessions
    session_ttl_minutes: int = Field(default=60 * 24, alias="SESSION_TTL_MINUTES")

    # Visitor listing
    default_page_size: int = Field(default=10, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE")
    recent_visitors_limit: int = Field(default=5, alias="RECENT_VISITORS_LIMIT")

    # QR rendering
    qr_box_size: int = Field(default=10, alias="QR_BOX_SIZE")
    qr_border: int = Field(default=2, alias="QR_BORDER")
    share_enabled: bool = Field(default=True, alias="SHARE_ENABLED")

    # Realtime change feed
    change_feed_queue_size: int = Field(default=100, alias="CHANGE_FEED_QUEUE_SIZE")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

settings = Settings()
