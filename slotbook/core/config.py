from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Slotbook API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 8

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "slotbook"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Partner calendar defaults. A partner row may override the timezone,
    # the daily capacity and the list of start times.
    DEFAULT_TIMEZONE: str = "Europe/Amsterdam"
    SCHEDULE_FIRST_HOUR: int = 9
    SCHEDULE_LAST_HOUR: int = 20
    SLOT_DURATION_MINUTES: int = 60
    DEFAULT_DAILY_CAPACITY: int = 12
    DEFAULT_BASELINE_MODE: str = "all"  # "all" | "future" | "none"
    MAX_SERIES_DAYS: int = 366

    # Booking policy
    REFUND_WINDOW_HOURS: int = 24
    UNPAID_HOLD_MINUTES: int = 30

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
