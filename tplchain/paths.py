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

"""Path normalisation helpers shared by the chain loader and the facade."""

from __future__ import annotations

import os
from pathlib import Path


def normalize_path(path: str | Path) -> str:
    """Collapse ``.``/``..`` segments and use the platform separator.

    The path does not need to exist and is *not* made absolute, so a bare
    template name such as ``"emails/welcome.j2"`` stays relative.
    """
    text = str(path).replace("\\", "/").replace("/", os.sep)
    return os.path.normpath(text)


def normalize_directory(path: str | Path) -> str:
    """Return an absolute, normalised form of a directory path.

    ``~`` is expanded.  The directory does not need to exist yet.
    """
    expanded = os.path.expanduser(normalize_path(path))
    return os.path.normpath(os.path.abspath(expanded))


def is_within(path: str, directory: str) -> bool:
    """Whether *path* equals *directory* or lies below it (string check only)."""
    if path == directory:
        return True
    prefix = directory if directory.endswith(os.sep) else directory + os.sep
    return path.startswith(prefix)
