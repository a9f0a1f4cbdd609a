"""
Application configuration management using Pydantic Settings.
"""
from functools import lru_cache
from typing import Annotated, Any, Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

CommaSeparatedList = Annotated[List[str], NoDecode]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    APP_NAME: str = "DevPortal Access"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")

    # API
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "DevPortal Access API"
    BACKEND_CORS_ORIGINS: CommaSeparatedList = Field(
        default=["http://localhost:3000"]
    )

    # Role classification (group entity references)
    ADMIN_GROUPS: CommaSeparatedList = Field(
        default=["group:default/platform-engineers", "group:default/platform-admins"]
    )
    OWNER_GROUPS: CommaSeparatedList = Field(
        default=["group:default/api-owners", "group:default/app-developers"]
    )
    CONSUMER_GROUPS: CommaSeparatedList = Field(
        default=["group:default/api-consumers"]
    )

    # Identity (headers set by the trusted auth proxy)
    IDENTITY_USER_HEADER: str = "X-Forwarded-User"
    IDENTITY_EMAIL_HEADER: str = "X-Forwarded-Email"
    IDENTITY_GROUPS_HEADER: str = "X-Forwarded-Groups"
    IDENTITY_DEFAULT_NAMESPACE: str = "default"

    # Resource store
    STORE_BACKEND: str = Field(default="memory", pattern="^(memory|redis)$")
    STORE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_KEY_PREFIX: str = "devportal"
    REDIS_MAX_CONNECTIONS: int = 50

    @field_validator(
        "BACKEND_CORS_ORIGINS",
        "ADMIN_GROUPS",
        "OWNER_GROUPS",
        "CONSUMER_GROUPS",
        mode="before",
    )
    @classmethod
    def split_comma_separated(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    def get_role_groups(self) -> Dict[str, List[str]]:
        """Get group lists keyed by the role they grant."""
        return {
            "admin": list(self.ADMIN_GROUPS),
            "owner": list(self.OWNER_GROUPS),
            "consumer": list(self.CONSUMER_GROUPS),
        }

    def get_store_config(self) -> Dict[str, Any]:
        """Get resource store configuration."""
        config: Dict[str, Any] = {
            "backend": self.STORE_BACKEND,
            "timeout": self.STORE_TIMEOUT_SECONDS,
        }
        if self.STORE_BACKEND == "redis":
            config["redis_url"] = self.REDIS_URL
            config["key_prefix"] = self.REDIS_KEY_PREFIX
        return config


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance
    """
    return Settings()


settings = get_settings()
