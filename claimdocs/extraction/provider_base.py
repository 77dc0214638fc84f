from abc import ABC, abstractmethod

from claimdocs.extraction.blocks import AnalysisResult


class BaseOcrProvider(ABC):
    """Contract for all OCR provider adapters."""

    name: str = ""

    @abstractmethod
    def analyze(self, data: bytes) -> AnalysisResult:
        """Run text and form recognition on raw document bytes.

        Args:
            data: Raw PDF or image content.

        Returns:
            AnalysisResult with the provider's blocks in returned order.

        Raises:
            OcrProviderError: on call failure or malformed response.
            OcrProviderTimeoutError: when the provider does not answer in time.
        """
