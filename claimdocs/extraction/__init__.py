from claimdocs.extraction.engine import OcrEngine
from claimdocs.extraction.factory import OcrProviderFactory, build_ocr_engine
from claimdocs.extraction.provider_base import BaseOcrProvider

__all__ = ["BaseOcrProvider", "OcrEngine", "OcrProviderFactory", "build_ocr_engine"]
