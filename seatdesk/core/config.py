from typing import Dict

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Seatdesk Library API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 8

    # First admin, created on startup when the admins table is empty
    FIRST_ADMIN_EMAIL: str = "admin@seatdesk.io"
    FIRST_ADMIN_USERNAME: str = "admin"
    FIRST_ADMIN_PASSWORD: str = "change-this-admin-password"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "seatdesk_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Seating
    # Guaranteed size of each section; capacity grows past it when higher seats exist.
    SECTION_MINIMUMS: Dict[str, int] = {"A": 66, "B": 39}
    # Hard upper bound per section. A section missing here is open-ended.
    SECTION_CEILINGS: Dict[str, int] = {}
    SEED_DEFAULT_SEATS: bool = True
    DEFAULT_TIME_SLOT: str = "Full day"

    # Subscriptions
    EXPIRY_WINDOW_DAYS: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def sections(self) -> list[str]:
        return sorted(set(self.SECTION_MINIMUMS) | set(self.SECTION_CEILINGS))


settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
