import os
from dotenv import load_dotenv


class Settings:
    def __init__(self) -> None:
        # Load variables from .env into environment
        load_dotenv()
        # "mongo" for the shared store, "memory" for local runs without a database
        self.STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "mongo").strip().lower()
        self.MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
        self.MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "ptoflow")
        self.KV_COLLECTION: str = os.getenv("KV_COLLECTION", "kv_store")
        # Host identity provider (Jira-compatible user directory)
        self.IDENTITY_BASE_URL: str = os.getenv("IDENTITY_BASE_URL", "").rstrip("/")
        self.IDENTITY_API_TOKEN: str = os.getenv("IDENTITY_API_TOKEN", "")
        self.IDENTITY_TIMEOUT: float = float(os.getenv("IDENTITY_TIMEOUT", "10"))
        # Resource-management hook called after approvals; empty disables it
        self.RESOURCE_INTEGRATION_URL: str = os.getenv("RESOURCE_INTEGRATION_URL", "")
        self.RESOURCE_INTEGRATION_TIMEOUT: float = float(os.getenv("RESOURCE_INTEGRATION_TIMEOUT", "10"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        # Frontend base URL (used in CORS)
        self.FRONTEND_BASE_URL: str = os.getenv("FRONTEND_BASE_URL", "")
        # Optional comma-separated list of additional allowed origins for CORS
        self.ALLOWED_ORIGINS: list[str] = [
            o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()
        ]


settings = Settings()
