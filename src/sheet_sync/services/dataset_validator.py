"""JSON Schema validation of sheet datasets.

Documents are checked against DATASET_SCHEMA (JSON Schema Draft 7) before
they are turned into pydantic models, so every structural problem in a
hand-edited file is reported at once with its JSON path.
"""

from typing import Any

from jsonschema import Draft7Validator
from pydantic import ValidationError as PydanticValidationError

from sheet_sync.models import Dataset
from sheet_sync.utils.exceptions import DatasetValidationError
from sheet_sync.utils.logging import get_logger

logger = get_logger(__name__)

DATASET_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Sheet dataset",
    "type": "object",
    "required": ["sheets"],
    "properties": {
        "$schema": {"type": "string"},
        "sheets": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "columns", "rows"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "columns": {"type": "array", "items": {"type": "string"}},
                    "formulas": {
                        "type": "object",
                        "additionalProperties": {"type": "string"},
                    },
                    "rows": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "additionalProperties": {"type": ["string", "number"]},
                        },
                    },
                },
            },
        },
    },
}


class DatasetValidator:
    """Validates raw JSON documents and builds :class:`Dataset` models."""

    def __init__(self, schema: dict[str, Any] | None = None) -> None:
        self.schema = schema or DATASET_SCHEMA
        Draft7Validator.check_schema(self.schema)
        self._validator = Draft7Validator(self.schema)

    def validate(self, document: Any) -> Dataset:
        """Validate a decoded JSON document.

        Args:
            document: Result of ``json.loads`` on a dataset file.

        Returns:
            The validated dataset model.

        Raises:
            DatasetValidationError: If the document violates the schema or
                the sheet rules (unique names/columns, formula targets).
        """
        errors = self.collect_errors(document)
        if errors:
            raise DatasetValidationError(
                f"Invalid dataset: {len(errors)} error(s) found",
                errors=errors,
            )

        try:
            dataset = Dataset.model_validate(document)
        except PydanticValidationError as e:
            messages = [
                f"{_format_path(error['loc'])}: {error['msg']}" for error in e.errors()
            ]
            raise DatasetValidationError(
                f"Invalid dataset: {len(messages)} error(s) found",
                errors=messages,
            ) from e

        logger.debug(
            "Dataset validated",
            sheets=len(dataset.sheets),
            rows=sum(sheet.row_count for sheet in dataset.sheets),
        )
        return dataset

    def collect_errors(self, document: Any) -> list[str]:
        """Return every schema violation as ``path: message`` strings."""
        errors = sorted(
            self._validator.iter_errors(document),
            key=lambda e: _format_path(e.absolute_path),
        )
        return [f"{_format_path(e.absolute_path)}: {e.message}" for e in errors]


def _format_path(path: Any) -> str:
    parts = [str(part) for part in path]
    return ".".join(parts) if parts else "(root)"
