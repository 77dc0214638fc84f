from claimdocs.config.settings import Settings
from claimdocs.extraction.engine import OcrEngine
from claimdocs.extraction.example_adapter import ExampleOcrAdapter
from claimdocs.extraction.provider_base import BaseOcrProvider
from claimdocs.extraction.textract_adapter import TextractAdapter


class OcrProviderFactory:
    """Creates the configured OCR provider adapter."""

    PROVIDERS = ("textract", "example")

    @classmethod
    def create(cls, settings: Settings) -> BaseOcrProvider:
        provider = settings.ocr_provider.lower()
        if provider == "example":
            return ExampleOcrAdapter()
        if provider == "textract":
            return TextractAdapter(
                region=settings.aws_region,
                timeout_seconds=settings.ocr_timeout_seconds,
                access_key_id=settings.aws_access_key_id,
                secret_access_key=settings.aws_secret_access_key,
            )
        raise ValueError(
            f"Unknown OCR provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )


def build_ocr_engine(settings: Settings) -> OcrEngine:
    """Build an OcrEngine around the configured provider."""
    return OcrEngine(
        OcrProviderFactory.create(settings),
        confidence_threshold=settings.ocr_confidence_threshold,
    )
