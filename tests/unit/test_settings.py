import pytest
from pydantic import ValidationError

from claimdocs.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_db_port(self) -> None:
        s = Settings()
        assert s.db_port == 5432

    def test_default_pool_settings(self) -> None:
        s = Settings()
        assert s.db_pool_min_size == 1
        assert s.db_pool_max_size == 10
        assert s.db_auto_migrate is True

    def test_default_max_job_attempts(self) -> None:
        s = Settings()
        assert s.max_job_attempts == 3

    def test_default_concurrency(self) -> None:
        s = Settings()
        assert s.extraction_concurrency == 4
        assert s.bulk_validate_concurrency == 4

    def test_default_ocr_settings(self) -> None:
        s = Settings()
        assert s.ocr_provider == "textract"
        assert s.ocr_confidence_threshold == 0.8
        assert s.ocr_timeout_seconds == 120

    def test_default_storage_backend(self) -> None:
        s = Settings()
        assert s.storage_backend == "local"
        assert s.signed_url_ttl_seconds == 3600

    def test_default_max_file_size(self) -> None:
        s = Settings()
        assert s.max_file_size_bytes == 5_242_880


class TestSettingsFromEnv:
    def test_loads_app_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ENV", "production")
        s = Settings()
        assert s.app_env == "production"

    def test_loads_db_host(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_HOST", "db.example.com")
        s = Settings()
        assert s.db_host == "db.example.com"

    def test_loads_ocr_threshold(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OCR_CONFIDENCE_THRESHOLD", "0.75")
        s = Settings()
        assert s.ocr_confidence_threshold == 0.75

    def test_loads_storage_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "s3")
        monkeypatch.setenv("S3_BUCKET", "claims-prod")
        s = Settings()
        assert s.storage_backend == "s3"
        assert s.s3_bucket == "claims-prod"


class TestSettingsValidation:
    def test_invalid_db_port_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_PORT", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_threshold_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OCR_CONFIDENCE_THRESHOLD", "high")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_concurrency_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXTRACTION_CONCURRENCY", "many")
        with pytest.raises(ValidationError):
            Settings()
