from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    MARKETPLACE_API_BASE_URL: str = "http://localhost:3000/api"
    MARKETPLACE_API_TOKEN: str | None = None
    MARKETPLACE_TIMEOUT_SECONDS: float = 10.0
    MARKETPLACE_WEBHOOK_SECRET: str | None = None

    SEARCH_RADIUS_MILES: float = 25.0
    DEFAULT_LATITUDE: float = 40.7128
    DEFAULT_LONGITUDE: float = -74.0060
    GEOLOCATION_TIMEOUT_SECONDS: float = 5.0

    CONFIRMATION_SOFT_SECONDS: float = 300.0
    CONFIRMATION_GRACE_SECONDS: float = 300.0
    NEW_STYLIST_DAYS: int = 21

    LOCATION_BLUR_METERS: float = 100.0
    PROXIMITY_ALERT_METERS: float = 3000.0

    TRAVEL_FEE: float = 10.0
    PLATFORM_FEE_RATE: float = 0.10


settings = Settings()
