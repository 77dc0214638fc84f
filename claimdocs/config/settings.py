from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "claimdocs"
    db_username: str = "claimdocs"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_connect_timeout_seconds: float = 10.0
    db_auto_migrate: bool = True

    max_job_attempts: int = 3
    job_poll_interval_seconds: int = 5
    extraction_concurrency: int = 4
    bulk_validate_concurrency: int = 4

    storage_backend: str = "local"
    storage_root: str = "/app/files"
    storage_public_base_url: str = "/files"
    storage_signing_secret: str = "change-me"
    signed_url_ttl_seconds: int = 3600

    aws_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    s3_bucket: str = "claim-documents"

    ocr_provider: str = "textract"
    ocr_confidence_threshold: float = 0.8
    ocr_timeout_seconds: int = 120

    pdf_engine: str = "pdfplumber"

    max_file_size_bytes: int = 5_242_880
