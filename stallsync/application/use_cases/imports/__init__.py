"""Import use cases: CSV files and the Hungerbox mailbox."""

from stallsync.application.use_cases.imports.csv_import import CsvImportUseCase
from stallsync.application.use_cases.imports.hungerbox import ListHungerboxEmailsUseCase

__all__ = ["CsvImportUseCase", "ListHungerboxEmailsUseCase"]
