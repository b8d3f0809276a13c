# tplchain — Jinja2 templating with prioritised template directories
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Plain-data configuration for :class:`~tplchain.environment.TemplatingEnvironment`."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from tplchain.chain import DEFAULT_EXTENSION


@dataclass
class TemplatingConfig:
    """Settings for a templating environment.

    ``template_directories`` holds ``(path, priority)`` pairs registered in
    list order; a priority of ``None`` takes the default (registration
    count), ``True`` the maximum.
    """

    project_dir: str
    cache_dir: str
    auto_refresh: bool = True
    extension: str = DEFAULT_EXTENSION
    template_directories: list[tuple[str, int | bool | None]] = field(default_factory=list)
    global_variables: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.project_dir = str(Path(self.project_dir).expanduser())
        self.cache_dir = str(Path(self.cache_dir).expanduser())
        self.template_directories = [
            _directory_entry(entry) for entry in self.template_directories
        ]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TemplatingConfig:
        """Build a config from a mapping, e.g. parsed TOML or JSON.

        Raises :class:`ValueError` on unknown keys.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(
                f"Unknown templating settings: {unknown}. Allowed: {sorted(known)}"
            )
        return cls(**data)


def _directory_entry(entry: Any) -> tuple[str, int | bool | None]:
    # Accepts "path", ("path", priority) or {"path": ..., "priority": ...}
    if isinstance(entry, (str, Path)):
        return str(Path(entry).expanduser()), None
    if isinstance(entry, Mapping):
        return str(Path(entry["path"]).expanduser()), entry.get("priority")
    path, priority = entry
    return str(Path(path).expanduser()), priority
