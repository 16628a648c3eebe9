# triage/config/settings.py
from pydantic_settings import BaseSettings
from pathlib import Path

# Get project root (2 levels up from this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent

class Settings(BaseSettings):
    # Storage
    storage_backend: str = "file"
    state_file: str = str(PROJECT_ROOT / "data" / "dashboard_state.json")

    # PostgreSQL (remote row store)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_database: str = "triage"
    postgres_username: str = "triage"
    postgres_password: str = ""
    postgres_sslmode: str = "prefer"
    postgres_connect_timeout: int = 5
    postgres_statement_timeout_ms: int = 10000
    postgres_initialize_schema: bool = True
    persistence_max_retries: int = 2
    persistence_retry_delay: float = 0.5

    # Brand and seed data
    brand_name: str = "Axxess"
    brand_primary: str = "#0099cc"
    seed_value: int = 19420427
    seed_item_count: int = 140
    seed_days_back: int = 60

    # Scoring and leaderboards
    scoring_profile: str = "tiered_rating"
    weekly_top_n: int = 5
    monthly_top_n: int = 5
    highlight_limit: int = 20
    highlight_order: str = "recent"
    highlight_window: str = "approved"
    agent_key_fallback: bool = True

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        case_sensitive = False
