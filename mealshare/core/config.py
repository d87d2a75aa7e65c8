from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Mealshare Reservation API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 8

    ADMIN_SECRET_KEY: str = "change-this-admin-secret"

    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "mealshare_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Reservation policy
    CANCEL_GRACE_SECONDS: int = 15 * 60
    EDIT_WINDOW_SECONDS: int = 5 * 60

    # Location privacy: ~300 m of latitude
    FUZZ_MAX_OFFSET_DEGREES: float = 0.003

    # External geocoder (OpenStreetMap Nominatim)
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/search"
    GEOCODER_USER_AGENT: str = "Mealshare/1.0 (neighborhood meal sharing)"
    GEOCODER_COUNTRY_CODES: str = "ch"
    GEOCODER_TIMEOUT_SECONDS: float = 10.0

    # Background sweep closing listings whose pickup window has ended
    EXPIRY_SWEEP_SECONDS: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"


settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
