from .cleaner import date_text, to_bool, to_datetime, to_number
from .loader import DATE_KEY, TYPE_KEY, DataIngestionPipeline
from .validator import ensure_records, validate_records

__all__ = [
    "DATE_KEY",
    "TYPE_KEY",
    "DataIngestionPipeline",
    "date_text",
    "ensure_records",
    "to_bool",
    "to_datetime",
    "to_number",
    "validate_records",
]
