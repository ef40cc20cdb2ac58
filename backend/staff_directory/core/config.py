import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    COSMOS_DB_ENDPOINT: str = ""
    COSMOS_DB_KEY: str = ""
    COSMOS_DB_DATABASE: str = "staff-directory"
    COSMOS_DB_EMPLOYEES_CONTAINER: str = "employees"

    AUTH_TENANT_ID: str = ""
    AUTH_CLIENT_ID: str = ""
    HR_ROLES: list[str] = ["hr", "admin"]

    LOCK_SIGNING_KEY: str = ""
    DEPARTMENT_CACHE_TTL_SECONDS: int = 3600

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
