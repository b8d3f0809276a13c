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

"""Jinja2 loaders and loader providers.

The environment receives template names that the chain loader has already
resolved, so the default :class:`FileLoader` simply opens them as paths.

A custom loader can be supplied eagerly (a ready :class:`jinja2.BaseLoader`)
or deferred (a zero-argument factory called once, when the engine starts).
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable

from jinja2 import BaseLoader, Environment, TemplateNotFound

from tplchain.exceptions import InvalidLoaderError

logger = logging.getLogger(__name__)


class FileLoader(BaseLoader):
    """Jinja2 loader that reads a template from its (resolved) file path."""

    def get_source(
        self, environment: Environment, template: str,
    ) -> tuple[str, str, Callable[[], bool]]:
        if not os.path.isfile(template):
            raise TemplateNotFound(template)
        with open(template, encoding="utf-8") as fh:
            source = fh.read()
        mtime = os.path.getmtime(template)

        def uptodate() -> bool:
            try:
                return os.path.getmtime(template) == mtime
            except OSError:
                return False

        return source, template, uptodate


class LoaderProvider(ABC):
    """Supplies the Jinja2 loader used when the engine starts."""

    @abstractmethod
    def get_loader(self) -> BaseLoader: ...


class EagerLoader(LoaderProvider):
    """Wraps an already constructed loader."""

    def __init__(self, loader: BaseLoader) -> None:
        self.loader = loader

    def get_loader(self) -> BaseLoader:
        return self.loader


class DeferredLoader(LoaderProvider):
    """Builds the loader from *factory* on first use and keeps it.

    Raises :class:`InvalidLoaderError` if the factory raises or returns
    anything other than a :class:`jinja2.BaseLoader`.
    """

    def __init__(self, factory: Callable[[], BaseLoader]) -> None:
        self.factory = factory
        self._loader: BaseLoader | None = None

    def get_loader(self) -> BaseLoader:
        if self._loader is not None:
            return self._loader

        try:
            loader = self.factory()
        except Exception as exc:
            raise InvalidLoaderError(
                f"Loader factory {self.factory!r} failed: {exc}"
            ) from exc

        if not isinstance(loader, BaseLoader):
            raise InvalidLoaderError(
                f"Loader factory {self.factory!r} returned {type(loader).__name__}, "
                "expected a jinja2.BaseLoader"
            )

        logger.debug("Deferred loader created: %s", type(loader).__name__)
        self._loader = loader
        return loader


def as_loader_provider(
    loader: BaseLoader | LoaderProvider | Callable[[], BaseLoader],
) -> LoaderProvider:
    """Wrap *loader* in the matching :class:`LoaderProvider`."""
    if isinstance(loader, LoaderProvider):
        return loader
    if isinstance(loader, BaseLoader):
        return EagerLoader(loader)
    if callable(loader):
        return DeferredLoader(loader)
    raise TypeError(
        f"Expected a jinja2.BaseLoader or a loader factory, got {type(loader).__name__}"
    )
