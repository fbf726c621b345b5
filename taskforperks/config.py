from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "data/taskforperks.db"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    claim_expire_hours: int = 24
    claim_sweep_interval_seconds: int = 600
    task_view_cache_ttl_seconds: int = 30
    sse_keepalive_seconds: int = 30
    event_queue_size: int = 100
    rate_limit_claim: str = "30/minute"
    rate_limit_read: str = "120/minute"
    disable_background: bool = False

    model_config = {"env_prefix": "TASKFORPERKS_"}


settings = Settings()
