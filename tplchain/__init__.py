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

"""Jinja2 templating with prioritised template directories.

Templates are looked up in a chain of directories, highest priority first,
and rendered through a lazily started Jinja2 engine with a bytecode cache,
global variables and output postprocessors.

Usage::

    from tplchain import TemplatingEnvironment

    env = TemplatingEnvironment(project_dir=".", cache_dir="var/cache/templates")
    env.add_template_directory("templates")
    env.add_template_directory("overrides", priority=True)
    html = env.render("page.j2", {"title": "Home"})
"""

from tplchain.chain import DEFAULT_EXTENSION, MAX_PRIORITY, TemplateChainLoader
from tplchain.config import TemplatingConfig
from tplchain.environment import (
    TemplatingEnvironment,
    get_environment,
    render,
    reset_environment,
    set_environment,
)
from tplchain.exceptions import InvalidLoaderError, LockedRegistryError, TemplatingError
from tplchain.loaders import DeferredLoader, EagerLoader, FileLoader, LoaderProvider
from tplchain.profiling import Stopwatch, StopwatchEvent

__all__ = [
    "DEFAULT_EXTENSION",
    "MAX_PRIORITY",
    "DeferredLoader",
    "EagerLoader",
    "FileLoader",
    "InvalidLoaderError",
    "LoaderProvider",
    "LockedRegistryError",
    "Stopwatch",
    "StopwatchEvent",
    "TemplateChainLoader",
    "TemplatingConfig",
    "TemplatingEnvironment",
    "TemplatingError",
    "get_environment",
    "render",
    "reset_environment",
    "set_environment",
]
