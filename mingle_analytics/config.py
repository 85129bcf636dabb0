from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "TopicMingle Analytics Hub"

    database_url: str = "sqlite:///./analytics.db"

    # Hosted backends. The main site falls back to the local database when unset.
    main_url: Optional[str] = None
    main_key: str = ""
    dataorbitzone_url: Optional[str] = None
    dataorbitzone_key: str = ""
    searchproject_url: Optional[str] = None
    searchproject_key: str = ""

    request_timeout: float = 10.0
    fetch_limit: int = 5000

    log_level: str = "INFO"
    cors_origins: str = "*"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def project_backend(self, project_id: str):
        """Returns the (url, key) pair configured for a project."""
        url = getattr(self, f"{project_id}_url", None)
        key = getattr(self, f"{project_id}_key", "")
        return url, key

    @property
    def cors_origin_list(self):
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
