from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "Finanzas API"
    API_PREFIX: str = "/api"
    PROJECT_VERSION: str = "1.0.0"
    DESCRIPTION: str = "Personal finance tracker with GitHub Gist sync"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "finanzas"
    LEDGER_STORAGE_KEY: str = "financeAppData"

    # Ledger
    TIMEZONE: str = "America/Bogota"
    LEGACY_DOUBLE_SETTLEMENT: bool = False

    # CORS
    FRONTEND_URL: str = "https://juanestebanprog.github.io"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Sessions (JWT)
    SECRET_KEY: str = "change-this-in-production"
    ALGORITHM: str = "HS256"
    SESSION_EXPIRE_DAYS: int = 30
    SESSION_COOKIE_NAME: str = "finanzas_session"
    OAUTH_STATE_COOKIE_NAME: str = "finanzas_oauth_state"

    # GitHub OAuth
    GITHUB_CLIENT_ID: str = ""
    GITHUB_CLIENT_SECRET: str = ""
    GITHUB_CALLBACK_URL: str = "http://localhost:3001/auth/github/callback"
    GITHUB_SCOPE: str = "gist"
    GITHUB_OAUTH_URL: str = "https://github.com/login/oauth"
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TIMEOUT_SECONDS: float = 10.0

    # Gist sync
    GIST_FILENAME: str = "finanzas-data.json"
    GIST_DESCRIPTION: str = "Datos de Finanzas Personales"
    SYNC_TIMEOUT_SECONDS: float = 30.0

    # Advertised limits
    GITHUB_REQUESTS_PER_HOUR: int = 5000
    APP_REQUESTS_PER_15_MIN: int = 100

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

settings = Settings()
