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

"""Prioritised template directory chain.

Template names are resolved against a list of directories, highest priority
first::

    chain = TemplateChainLoader(project_dir="/srv/app")
    chain.register("/srv/app/templates")              # priority 0
    chain.register("/srv/app/themes/dark", 10)        # searched first
    chain.resolve("layout.j2")  # -> "/srv/app/themes/dark/layout.j2" if present

The registry locks itself on the first :meth:`TemplateChainLoader.resolve`
call.  From then on the directory order is fixed and any further
:meth:`~TemplateChainLoader.register` raises
:class:`~tplchain.exceptions.LockedRegistryError`.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from pathlib import Path

from tplchain.exceptions import LockedRegistryError
from tplchain.paths import is_within, normalize_directory, normalize_path

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".j2"

# Searched before every other directory.
MAX_PRIORITY = sys.maxsize


class TemplateChainLoader:
    """Resolve template names against prioritised candidate directories.

    Args:
        project_dir: Project root.  Existing templates already below it are
            returned as given.
        extension: File extension of file-backed templates.  Names without
            it are passed through untouched.
    """

    def __init__(
        self,
        project_dir: str | Path,
        extension: str = DEFAULT_EXTENSION,
    ) -> None:
        self.project_dir = normalize_directory(project_dir)
        self.extension = extension
        self._directories: dict[int, str] = {}
        self._ordered: list[tuple[int, str]] = []
        self._locked = False
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def directories(self) -> list[tuple[int, str]]:
        """``(priority, path)`` pairs, highest priority first."""
        if self._locked:
            return list(self._ordered)
        return self._sort_directories()

    def register(self, path: str | Path, priority: int | bool | None = None) -> None:
        """Add a template directory.

        *priority* may be an int (higher is searched earlier), ``True`` or
        :data:`MAX_PRIORITY` for the front of the chain, or ``None``/``False``
        for the number of directories registered so far.  A path that is
        already registered is moved to the new priority; a priority that is
        already taken is overwritten.
        """
        with self._lock:
            if self._locked:
                raise LockedRegistryError(
                    f"Cannot add template directory {str(path)!r}: the registry is "
                    "locked because a template was already resolved. Add all "
                    "template directories before the first render."
                )

            if priority is True:
                key = MAX_PRIORITY
            elif priority is None or priority is False:
                key = len(self._directories)
            else:
                key = int(priority)

            directory = normalize_directory(path)
            for existing, registered in list(self._directories.items()):
                if registered == directory and existing != key:
                    del self._directories[existing]

            replaced = self._directories.get(key)
            if replaced is not None and replaced != directory:
                logger.debug(
                    "Priority %d: replacing %s with %s", key, replaced, directory,
                )
            self._directories[key] = directory
            logger.debug("Registered template directory %s (priority %d)", directory, key)

    def resolve(self, template: str) -> str:
        """Return the path the engine should open for *template*.

        Never raises for missing files: when nothing matches, the normalised
        name is returned and the engine reports the missing template.
        """
        if not self._locked:
            self._lock_registry()

        if not template.endswith(self.extension):
            return template

        template = normalize_path(template)

        if is_within(template, self.project_dir) and os.path.exists(template):
            return template

        for _, directory in self._ordered:
            if is_within(template, directory) and os.path.exists(directory):
                return template

            path = os.path.join(directory, template)
            if os.path.exists(path):
                logger.debug("Resolved %s to %s", template, path)
                return path

        logger.debug("No template directory contains %s", template)
        return template

    def _lock_registry(self) -> None:
        with self._lock:
            if self._locked:
                return
            self._ordered = self._sort_directories()
            self._locked = True
        logger.debug(
            "Template directory registry locked with %d directories",
            len(self._ordered),
        )

    def _sort_directories(self) -> list[tuple[int, str]]:
        return sorted(self._directories.items(), key=lambda item: item[0], reverse=True)
