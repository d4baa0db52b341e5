"""Application configuration using pydantic-settings."""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Shared secret expected in the x-api-key header. Empty rejects every call.
    api_secret_key: str = ""

    # Server
    port: int = 3001
    host: str = "0.0.0.0"

    # Logging
    log_level: str = "INFO"

    # Gemini Settings
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash-lite"
    gemini_max_tokens: int = 4096
    text_temperature: float = 0.4
    ocr_temperature: float = 0.3
    url_temperature: float = 0.1

    # Firebase
    firebase_project_id: Optional[str] = None
    firebase_storage_bucket: Optional[str] = None
    make_uploads_public: bool = True
    image_stream_chunk_size: int = 256 * 1024

    # Request limits
    max_text_length: int = 15000
    max_page_text_chars: int = 12000
    page_fetch_timeout: float = 10.0
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB

    # Old mobile builds expect {"result": "<recipe json string>"} from /parse-recipe
    legacy_result_envelope: bool = False

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_per_hour: int = 100

    # CORS
    cors_origins: str = "*"  # Comma-separated origins or "*" for all

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Get list of CORS origins."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]


# Global settings instance
settings = Settings()
