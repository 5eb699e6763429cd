"""Pydantic models for the canonical JSON dataset."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

CellValue = str | int | float
"""A row value: JSON strings and numbers only."""

Row = dict[str, CellValue]


class SheetSchema(BaseModel):
    """One worksheet: ordered columns, per-column formulas and data rows."""

    name: str = Field(..., min_length=1, description="Unique sheet tab name")
    columns: list[str] = Field(..., description="Ordered column names")
    formulas: dict[str, str] | None = Field(
        default=None, description="Column name to symbolic formula"
    )
    rows: list[Row] = Field(default_factory=list, description="Data rows")

    @model_validator(mode="after")
    def validate_columns(self) -> "SheetSchema":
        """Columns must be unique and every formula must target a column.

        Blank names are placeholders for header-less worksheet columns and
        may repeat.
        """
        duplicates = sorted(
            {c for c in self.columns if c and self.columns.count(c) > 1}
        )
        if duplicates:
            raise ValueError(
                f"Sheet {self.name!r} has duplicate columns: {duplicates}"
            )
        unknown = [c for c in (self.formulas or {}) if c not in self.columns]
        if unknown:
            raise ValueError(
                f"Sheet {self.name!r} has formulas for unknown columns: {unknown}"
            )
        return self

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def formula_for(self, column: str) -> str | None:
        return (self.formulas or {}).get(column)


class Dataset(BaseModel):
    """The canonical ``{"$schema": ..., "sheets": [...]}`` document."""

    model_config = ConfigDict(populate_by_name=True)

    schema_ref: str | None = Field(default=None, alias="$schema")
    sheets: list[SheetSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_sheet_names(self) -> "Dataset":
        names = [sheet.name for sheet in self.sheets]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate sheet names: {duplicates}")
        return self

    def sheet(self, name: str) -> SheetSchema:
        """Return the sheet called ``name``.

        Raises:
            KeyError: If no sheet has that name.
        """
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        raise KeyError(name)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with ``$schema`` first and without absent formulas."""
        data: dict[str, Any] = self.model_dump(by_alias=True, exclude_none=True)
        return data
