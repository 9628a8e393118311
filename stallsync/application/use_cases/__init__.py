"""Application use cases: one entry point per workflow."""

from stallsync.application.use_cases.imports import (
    CsvImportUseCase,
    ListHungerboxEmailsUseCase,
)

__all__ = ["CsvImportUseCase", "ListHungerboxEmailsUseCase"]
