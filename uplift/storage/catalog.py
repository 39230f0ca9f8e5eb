"""Update catalog — maps store versions to update units.

Update modules live in a package and are named `u_NNN_description.py`,
where NNN is the zero-padded store version the update brings the store to.
Each must define a `SystemUpdate` subclass called `Update` whose
constructor takes no arguments.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Callable

from uplift.exceptions import CatalogError
from uplift.updates.base import SystemUpdate

UpdateFactory = Callable[[], SystemUpdate]

UPDATE_PREFIX = "u_"

_logger = logging.getLogger(__name__)


class UpdateCatalog:
    """Every known update, keyed by target version."""

    def __init__(self) -> None:
        self._factories: dict[int, UpdateFactory] = {}

    def register(self, version: int, factory: UpdateFactory) -> None:
        if version < 1:
            raise CatalogError(f"Update version must be positive, got {version}")
        if version in self._factories:
            raise CatalogError(f"Duplicate update for version {version}")
        self._factories[version] = factory

    def versions(self) -> list[int]:
        return sorted(self._factories)

    @property
    def latest_version(self) -> int:
        return max(self._factories, default=0)

    def applicable(self, old_version: int) -> list[SystemUpdate]:
        """Fresh units for every version above `old_version`, ascending."""
        units: list[SystemUpdate] = []
        for version in self.versions():
            if version <= old_version:
                continue
            unit = self._factories[version]()
            if unit.version is None:
                unit.version = version
            elif unit.version != version:
                raise CatalogError(
                    f"Update '{unit.description}' declares version {unit.version} "
                    f"but is registered for version {version}"
                )
            units.append(unit)
        return units

    def discover(self, package: str) -> list[int]:
        """Register every `u_NNN_*.py` module of `package`. Returns the versions found."""
        pkg = importlib.import_module(package)
        pkg_file = getattr(pkg, "__file__", None)
        if pkg_file is None:
            raise CatalogError(f"'{package}' is not a regular package")

        found: list[int] = []
        for path in sorted(Path(pkg_file).parent.glob(f"{UPDATE_PREFIX}*.py")):
            # u_001_description.py -> 1
            parts = path.stem.split("_")
            if len(parts) < 2:
                continue
            try:
                version = int(parts[1])
            except ValueError:
                _logger.warning("Skipping update module with bad version: %s", path.name)
                continue

            module = importlib.import_module(f"{package}.{path.stem}")
            factory = getattr(module, "Update", None)
            if factory is None:
                raise CatalogError(f"Update module {path.name} defines no 'Update' class")
            self.register(version, factory)
            found.append(version)
        return found
