from pydantic_settings import BaseSettings
from pydantic import Field
import os
from typing import List


class Config(BaseSettings):
    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/draftstore.db", alias="DB_URL"
    )
    db_auto_create: bool = Field(default=True, alias="DB_AUTO_CREATE")

    # User token (JWT) Configuration
    jwt_secret: str = Field(default="", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Service-to-service token Configuration
    s2s_secret: str = Field(default="", alias="S2S_SECRET")
    allowed_services: str = Field(default="", alias="ALLOWED_SERVICES")

    # Secret header
    secret_header_required: bool = Field(default=False, alias="SECRET_HEADER_REQUIRED")

    cors_origins: str = Field(default="", alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    is_production: bool = (
        os.getenv("ENVIRONMENT", "development").lower() == "production"
    )

    @property
    def allowed_service_names(self) -> List[str]:
        return [s.strip() for s in self.allowed_services.split(",") if s.strip()]

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate the settings
config = Config()
