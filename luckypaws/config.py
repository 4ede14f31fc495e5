from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="LUCKYPAWS_")

    app_name: str = "LuckyPaws"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./luckypaws.db"
    # SQLite only: how long a writer waits on a locked database file
    sqlite_busy_timeout_seconds: float = 15.0

    # Identifier of the canonical game document
    game_id: str = "default"

    # Empty token disables every privileged endpoint
    admin_token: str = ""

    # Optimistic transaction attempts before surfacing a ContentionError
    transaction_max_attempts: int = 5

    # Staleness windows, one per sweep path
    client_stale_lock_seconds: int = 45
    scheduled_stale_lock_seconds: int = 60

    sweep_interval_seconds: int = 60
    scheduler_enabled: bool = True


settings = Settings()


# =============================================================================
# CARD STATE MACHINE LIMITS
# =============================================================================

# A held card at or above this progress is auto-completed when its holder
# claims another card
AUTO_COMPLETE_PROGRESS = 90

# Values shown on rows that do not carry a real prize
DECOY_PRIZES = (10, 20, 50, 100, 200, 500, 1000)

# Prizes below this are never split across two slots
MIN_SPLIT_PRIZE = 20
