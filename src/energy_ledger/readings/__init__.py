"""Reading validation and history reporting."""

from energy_ledger.readings.differences import AnnotatedReading, with_differences
from energy_ledger.readings.validator import ValidationResult, validate_reading

__all__ = ["AnnotatedReading", "ValidationResult", "validate_reading", "with_differences"]
