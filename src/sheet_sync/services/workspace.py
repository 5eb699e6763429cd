"""Directory and file naming conventions of a sheet-sync project.

A project root holds:

    data/NAME.json                 canonical datasets
    render-template/NAME-模板.xlsx  workbooks generated from data/
    render-data/NAME.xlsx          workbooks edited by users
    backup/NAME.json               previous dataset, kept on overwrite
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from sheet_sync.config import Settings, settings

_WORKBOOK_SUFFIX = re.compile(r"\.xlsx?$", re.IGNORECASE)


def base_name(file_name: str) -> str:
    """Strip a trailing ``.xlsx``/``.xls`` (any case) from a file name."""
    return _WORKBOOK_SUFFIX.sub("", Path(file_name).name)


@dataclass
class Workspace:
    root: Path
    data_dir_name: str = "data"
    template_dir_name: str = "render-template"
    render_data_dir_name: str = "render-data"
    backup_dir_name: str = "backup"
    template_suffix: str = "-模板"

    @classmethod
    def from_settings(cls, root: Path, s: Settings | None = None) -> Workspace:
        s = s or settings
        return cls(
            root=root,
            data_dir_name=s.data_dir,
            template_dir_name=s.template_dir,
            render_data_dir_name=s.render_data_dir,
            backup_dir_name=s.backup_dir,
            template_suffix=s.template_suffix,
        )

    @property
    def data_dir(self) -> Path:
        return self.root / self.data_dir_name

    @property
    def template_dir(self) -> Path:
        return self.root / self.template_dir_name

    @property
    def render_data_dir(self) -> Path:
        return self.root / self.render_data_dir_name

    @property
    def backup_dir(self) -> Path:
        return self.root / self.backup_dir_name

    def json_path(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def template_path(self, name: str) -> Path:
        return self.template_dir / f"{name}{self.template_suffix}.xlsx"

    def render_data_path(self, file_name: str) -> Path:
        """Edited workbook path; ``.xlsx`` is appended when no suffix is given."""
        if _WORKBOOK_SUFFIX.search(file_name):
            return self.render_data_dir / file_name
        return self.render_data_dir / f"{file_name}.xlsx"

    def list_datasets(self) -> list[str]:
        """Base names of every dataset in the data directory, sorted."""
        if not self.data_dir.is_dir():
            return []
        return sorted(path.stem for path in self.data_dir.glob("*.json"))
