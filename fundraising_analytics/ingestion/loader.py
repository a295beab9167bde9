"""Record ingestion: map raw source records onto the normalized shape."""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import polars as pl
import yaml
from pydantic import BaseModel

from ..exceptions import RegistryLoadError, UnknownSourceError
from ..models import AdMetricRow, AttributionRow, SmsMetricRow, TransactionRow
from .cleaner import date_text
from .validator import ensure_records, validate_records

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH = Path(__file__).parent.parent / "config" / "source_registry.yaml"

# Map registry model names to validation models
SOURCE_MODELS: dict[str, type[BaseModel]] = {
    "ad_metric": AdMetricRow,
    "sms_metric": SmsMetricRow,
    "transaction": TransactionRow,
    "attribution": AttributionRow,
}

DATE_KEY = "_date"
TYPE_KEY = "_type"


class DataIngestionPipeline:
    """Pipeline for validating and normalizing ad, SMS and donation records.

    Normalized records are shallow copies of the source records with two
    extra keys: ``_date`` (the ``YYYY-MM-DD`` part of the source's date field,
    or "") and ``_type`` (the source name).

    Usage:
        pipeline = DataIngestionPipeline()
        records = pipeline.normalize(meta_rows, "meta")
    """

    def __init__(self, registry_path: Path | None = None):
        self.registry_path = registry_path or DEFAULT_REGISTRY_PATH
        self.registry = self._load_registry(self.registry_path)

    def _load_registry(self, path: Path) -> dict[str, Any]:
        """Load source registry from YAML."""
        try:
            with open(path) as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise RegistryLoadError(f"Failed to load registry from {path}: {e}") from e

        if not isinstance(raw, dict) or not isinstance(raw.get("sources"), dict):
            raise RegistryLoadError(f"Registry {path} has no 'sources' mapping")
        return raw["sources"]

    def source(self, source_name: str) -> dict[str, Any]:
        """Registry entry for a source."""
        try:
            return self.registry[source_name]
        except KeyError:
            raise UnknownSourceError(source_name, sorted(self.registry)) from None

    def spend_sources(self) -> dict[str, str]:
        """{source_name: spend_field} for every source that carries spend."""
        return {
            name: entry["spend_field"]
            for name, entry in self.registry.items()
            if entry.get("spend_field")
        }

    def revenue_sources(self) -> dict[str, str]:
        """{source_name: revenue_field} for every source that carries revenue."""
        return {
            name: entry["revenue_field"]
            for name, entry in self.registry.items()
            if entry.get("revenue_field")
        }

    def normalize(
        self,
        records: Sequence[Mapping[str, Any]],
        source_name: str,
        validate: bool = False,
    ) -> list[dict[str, Any]]:
        """Validate (optionally) and tag records from one source.

        Args:
            records: Raw records as returned by the data layer
            source_name: Key in the source registry (meta, sms, transactions...)
            validate: Whether to run pydantic validation (default: False)

        Returns:
            New list of normalized records; inputs are not modified.
        """
        entry = self.source(source_name)
        ensure_records(records, source_name)

        if validate:
            model = SOURCE_MODELS.get(entry.get("model", ""))
            if model is None:
                raise ValueError(f"No validation model for source: {source_name}")
            validate_records(records, model)

        date_field = entry.get("date_field")
        normalized = [
            {
                **record,
                DATE_KEY: date_text(record.get(date_field)) if date_field else "",
                TYPE_KEY: source_name,
            }
            for record in records
        ]

        logger.debug("Normalized %d %s records", len(normalized), source_name)
        return normalized

    def load(
        self, path: Path, source_name: str, validate: bool = False
    ) -> list[dict[str, Any]]:
        """Read a CSV or JSON export and normalize it."""
        suffix = path.suffix.lower()
        if suffix == ".csv":
            # All columns as strings; coercion happens in the analytics layer
            df = pl.read_csv(path, infer_schema_length=0)
        elif suffix == ".json":
            df = pl.read_json(path)
        else:
            raise ValueError(f"Unsupported file type: {suffix}")

        return self.normalize(df.to_dicts(), source_name, validate=validate)
