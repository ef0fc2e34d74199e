from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="NFTPER_", extra="ignore")

    # Backend (Cloudflare Worker прячет IP бэкенда)
    API_URL: str = "https://blue-moon-d620.alporat.workers.dev"
    REQUEST_TIMEOUT_SECONDS: float = 15.0
    UNLOAD_TIMEOUT_SECONDS: float = 2.0

    # Queue
    POLL_INTERVAL_MS: int = 2500

    # Defaults для deep link / back-forward
    DEFAULT_TIMEFRAME: str = "1m"
    DEFAULT_CHAINS: list[str] = ["ethereum"]

    SITE_ORIGIN: str = "https://flips.nftper.com"
    LOG_LEVEL: str = "INFO"

    @property
    def poll_interval(self) -> float:
        return self.POLL_INTERVAL_MS / 1000


settings = Settings()
