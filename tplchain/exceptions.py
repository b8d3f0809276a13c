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

"""Exceptions raised by tplchain."""


class TemplatingError(Exception):
    """Base class for tplchain errors."""


class LockedRegistryError(TemplatingError):
    """A template directory was registered after the first template lookup."""


class InvalidLoaderError(TemplatingError):
    """A deferred loader factory failed or did not produce a Jinja2 loader."""
