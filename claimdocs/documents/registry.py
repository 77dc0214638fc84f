from collections.abc import Iterable
from typing import ClassVar, Generic, TypeVar

T = TypeVar("T")


class DocumentTypeRegistry(Generic[T]):
    """Maps document-type keys (case-insensitive) to a handler.

    New document types are added with ``register``; lookups for unknown
    types return ``None`` so callers can skip type-specific work.
    """

    CATEGORIES: ClassVar[dict[str, tuple[str, ...]]] = {
        "income": ("income_certificate", "salary_slip"),
        "medical": ("medical_bill", "medical_report"),
        "education": ("education_certificate", "marksheet"),
        "bank": ("bank_statement",),
    }

    def __init__(self) -> None:
        self._handlers: dict[str, T] = {}

    def register(self, document_types: Iterable[str], handler: T) -> None:
        for document_type in document_types:
            self._handlers[document_type.lower()] = handler

    def register_category(self, category: str, handler: T) -> None:
        types = self.CATEGORIES.get(category)
        if types is None:
            raise ValueError(
                f"Unknown document category '{category}'. Choose from: {list(self.CATEGORIES)}"
            )
        self.register(types, handler)

    def get(self, document_type: str) -> T | None:
        return self._handlers.get(document_type.lower())
