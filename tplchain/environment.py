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

"""Jinja2 templating environment with a prioritised template chain.

Usage::

    from tplchain import TemplatingEnvironment

    env = TemplatingEnvironment(project_dir=".", cache_dir="var/cache/templates")
    env.add_template_directory("templates")
    env.add_template_directory("themes/dark", priority=True)
    env.add_global_variable("site_name", "Example")
    html = env.render("page.j2", {"title": "Home"})

The Jinja2 engine is started lazily by the first render.  That render also
locks the template directory chain, so register every directory first.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import shutil
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, Environment, FileSystemBytecodeCache, Template
from jinja2.ext import Extension

from tplchain.chain import DEFAULT_EXTENSION, TemplateChainLoader
from tplchain.config import TemplatingConfig
from tplchain.loaders import FileLoader, LoaderProvider, as_loader_provider
from tplchain.profiling import Stopwatch

logger = logging.getLogger(__name__)

ExtensionSpec = type[Extension] | str
Postprocessor = Callable[[str], Any]


def _attributes(obj: object) -> dict[str, Any]:
    """Public attributes of *obj*, including slotted objects and namedtuples."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    if isinstance(obj, tuple) and hasattr(obj, "_asdict"):
        return dict(obj._asdict())
    return {
        name: getattr(obj, name)
        for name in dir(obj)
        if not name.startswith("_")
    }


class _ChainEnvironment(Environment):
    """Jinja2 environment that resolves ``extends``/``include`` names through the chain."""

    def __init__(self, chain: TemplateChainLoader, **options: Any) -> None:
        super().__init__(**options)
        self.chain = chain

    def join_path(self, template: str, parent: str) -> str:
        return self.chain.resolve(template)


class TemplatingEnvironment:
    """Facade over a Jinja2 engine and a :class:`TemplateChainLoader`.

    Args:
        project_dir: Project root.  Templates already inside it are used as given.
        cache_dir: Directory for compiled template bytecode.  Created on demand.
        stopwatch: Timing sink; a private :class:`Stopwatch` is used if omitted.
        logger: Logger to use instead of the module logger.
        auto_refresh: Recompile templates whose source changed on disk.
        extension: File extension of file-backed templates.
    """

    def __init__(
        self,
        project_dir: str | Path,
        cache_dir: str | Path,
        *,
        stopwatch: Stopwatch | None = None,
        logger: logging.Logger | None = None,
        auto_refresh: bool = True,
        extension: str = DEFAULT_EXTENSION,
    ) -> None:
        self.project_dir = Path(project_dir).expanduser()
        self.cache_dir = Path(cache_dir).expanduser()
        self.stopwatch = stopwatch or Stopwatch()
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.auto_refresh = auto_refresh
        self.chain = TemplateChainLoader(self.project_dir, extension=extension)

        self._engine: _ChainEnvironment | None = None
        self._engine_lock = threading.Lock()
        self._global_variables: dict[str, Any] = {}
        self._extensions: list[ExtensionSpec] = []
        self._postprocessors: list[Postprocessor] = []
        self._loader_provider: LoaderProvider | None = None

    @classmethod
    def from_config(cls, config: TemplatingConfig, **kwargs: Any) -> TemplatingEnvironment:
        """Build an environment and register everything *config* lists."""
        env = cls(
            config.project_dir,
            config.cache_dir,
            auto_refresh=config.auto_refresh,
            extension=config.extension,
            **kwargs,
        )
        for path, priority in config.template_directories:
            env.add_template_directory(path, priority)
        for key, value in config.global_variables.items():
            env.add_global_variable(key, value)
        return env

    # --- Rendering -------------------------------------------------------------

    def render(
        self,
        template: str,
        parameters: Mapping[str, Any] | object | None = None,
        block: str | None = None,
    ) -> str:
        """Render *template* (or one named *block* of it) to a string.

        Raises ``jinja2.TemplateNotFound`` if the resolved template cannot be
        loaded, and :class:`KeyError` if *block* does not exist.
        """
        self.stopwatch.start("tplchain.render", "Templating")
        try:
            name = self.chain.resolve(template)
            tmpl = self.engine.get_template(name)
            variables = self._variables(parameters)
            if block is None:
                content = tmpl.render(variables)
            else:
                content = self._render_block(tmpl, template, block, variables)
        finally:
            self.stopwatch.stop("tplchain.render")

        return self._postprocess(content)

    @staticmethod
    def _render_block(
        tmpl: Template, template: str, block: str, variables: dict[str, Any],
    ) -> str:
        context = tmpl.new_context(variables)
        # Running the root render function walks the extends chain and
        # appends every ancestor's blocks to context.blocks.
        for _ in tmpl.root_render_func(context):
            pass
        if block not in context.blocks:
            raise KeyError(f"Template {template!r} has no block {block!r}")
        return "".join(context.blocks[block][0](context))

    def _postprocess(self, content: str) -> str:
        for postprocessor in self._postprocessors:
            content = str(postprocessor(content))
        return content

    def _variables(self, parameters: Mapping[str, Any] | object | None) -> dict[str, Any]:
        # Global variables are not applied to object parameters.
        if parameters is None:
            return dict(self._global_variables)
        if isinstance(parameters, Mapping):
            return {**parameters, **self._global_variables}
        return _attributes(parameters)

    # --- Engine ----------------------------------------------------------------

    @property
    def engine(self) -> Environment:
        """The Jinja2 environment, started on first access."""
        with self._engine_lock:
            if self._engine is None:
                self._engine = self._start_engine()
            return self._engine

    def _start_engine(self) -> _ChainEnvironment:
        self.stopwatch.start("tplchain.engine", "Templating")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            engine = _ChainEnvironment(
                self.chain,
                loader=self.loader(),
                bytecode_cache=FileSystemBytecodeCache(str(self.cache_dir)),
                extensions=list(self._extensions),
                auto_reload=self.auto_refresh,
                keep_trailing_newline=True,
                autoescape=False,
            )
        finally:
            self.stopwatch.stop("tplchain.engine")

        self.logger.info(
            "Started Jinja2 engine %d (cache: %s, auto refresh: %s)",
            id(engine), self.cache_dir, self.auto_refresh,
        )
        return engine

    def loader(self) -> BaseLoader:
        """Return the Jinja2 loader, resolving a deferred factory if needed.

        Raises :class:`~tplchain.exceptions.InvalidLoaderError` if the
        factory fails.
        """
        if self._loader_provider is None:
            self._loader_provider = as_loader_provider(FileLoader())
        return self._loader_provider.get_loader()

    def set_loader(
        self, loader: BaseLoader | LoaderProvider | Callable[[], BaseLoader],
    ) -> TemplatingEnvironment:
        """Use *loader* (an instance, or a factory called on engine start)."""
        if self._engine is not None:
            self.logger.warning(
                "Loader set after the Jinja2 engine started; it is used from now on",
            )
        self._loader_provider = as_loader_provider(loader)
        if self._engine is not None:
            self._engine.loader = self.loader()
        return self

    # --- Configuration ---------------------------------------------------------

    def add_template_directory(
        self, path: str | Path, priority: int | bool | None = None,
    ) -> TemplatingEnvironment:
        """Add a template directory.

        Higher *priority* is searched earlier; ``True`` puts it first.
        Raises :class:`~tplchain.exceptions.LockedRegistryError` once any
        template has been rendered.
        """
        self.chain.register(path, priority)
        return self

    def add_global_variable(self, key: str, value: Any) -> TemplatingEnvironment:
        self._global_variables[key] = value
        return self

    def add_extension(self, *extensions: ExtensionSpec) -> TemplatingEnvironment:
        """Add Jinja2 extensions (classes or import strings)."""
        for extension in extensions:
            if extension in self._extensions:
                self.logger.warning(
                    "%s.add_extension tried to add an already existing extension %r. "
                    "Check your configuration for a duplicate call.",
                    type(self).__name__, extension,
                )
                continue
            self._extensions.append(extension)
            if self._engine is not None:
                self._engine.add_extension(extension)
        return self

    def add_postprocessor(self, *postprocessors: Postprocessor) -> TemplatingEnvironment:
        """Add callables applied, in order, to every rendered string."""
        self._postprocessors.extend(postprocessors)
        return self

    # --- Cache -----------------------------------------------------------------

    def clear_template_cache(self) -> bool:
        """Delete the bytecode cache directory.

        Returns ``False`` (and logs the error) if it could not be removed.
        """
        if not os.path.exists(self.cache_dir):
            return True
        try:
            shutil.rmtree(self.cache_dir)
        except OSError as exc:
            self.logger.error("Could not clear template cache %s: %s", self.cache_dir, exc)
            return False

        # Restart on next render so the cache directory is recreated.
        with self._engine_lock:
            self._engine = None
        self.logger.info("Cleared template cache at %s", self.cache_dir)
        return True


# ---------------------------------------------------------------------------
# Global accessor
# ---------------------------------------------------------------------------
_global_environment: TemplatingEnvironment | None = None
_environment_lock = threading.Lock()


def set_environment(environment: TemplatingEnvironment) -> None:
    """Install the process-wide environment used by :func:`render`.

    Raises :class:`RuntimeError` if one is already installed.  Tests should
    call :func:`reset_environment` afterwards.
    """
    global _global_environment
    with _environment_lock:
        if _global_environment is not None:
            raise RuntimeError(
                "A templating environment is already installed and cannot be "
                "installed twice."
            )
        _global_environment = environment
    logger.debug("Installed global templating environment %d", id(environment))


def get_environment() -> TemplatingEnvironment:
    """Return the installed environment, or raise :class:`RuntimeError`."""
    with _environment_lock:
        if _global_environment is None:
            raise RuntimeError("The templating environment has not been instantiated yet.")
        return _global_environment


def reset_environment() -> None:
    """Remove the installed environment."""
    global _global_environment
    with _environment_lock:
        _global_environment = None


def render(
    template: str,
    parameters: Mapping[str, Any] | object | None = None,
    block: str | None = None,
) -> str:
    """Render with the installed environment."""
    return get_environment().render(template, parameters, block)
