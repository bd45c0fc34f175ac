from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./habits.db"
    DB_ECHO: bool = False

    HOST: str = "0.0.0.0"
    PORT: int = 5000
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "UTC"

    SCHEDULER_ENABLED: bool = True
    RESET_HOUR: int = 0
    RESET_MINUTE: int = 0

    @property
    def cors_origins(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return []
        return [x.strip() for x in self.CORS_ORIGINS.split(",") if x.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
