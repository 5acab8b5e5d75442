"""User-facing cascade settings and their normalization."""

from __future__ import annotations

import logging
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, cast

from coffin.domain.cascade import DEFAULT_FLAG, CascadeConfig
from coffin.domain.model import AssociationTree

from .env import require_env_var
from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from coffin.domain.model import AssociationSpec
    from coffin.domain.ports import FlagTypeIntrospector

log = logging.getLogger(__name__)

CASCADE_SECTION: Final[str] = "cascade"
CASCADE_SETTINGS_ENV: Final[str] = "COFFIN_CASCADE_SETTINGS"

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")


def underscore(name: str) -> str:
    """Return the property name for an association name.

    ``"GrandChildren"`` and ``"grand-children"`` both become ``"grand_children"``.
    """

    step = _ACRONYM_BOUNDARY.sub(r"\1_\2", name.strip())
    step = _WORD_BOUNDARY.sub(r"\1_\2", step)
    return step.replace("-", "_").lower()


@dataclass(frozen=True, slots=True, kw_only=True)
class CascadeSettings:
    """Cascade settings as written by users, before schema introspection."""

    flag: str = DEFAULT_FLAG
    associations: AssociationSpec | None = None
    protections: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> CascadeSettings:
        unknown = set(data) - {"flag", "associations", "protections"}
        if unknown:
            raise ConfigurationError(f"Unknown cascade settings: {', '.join(sorted(unknown))}")

        flag = data.get("flag", DEFAULT_FLAG)
        if not isinstance(flag, str) or not flag.strip():
            raise ConfigurationError("Cascade flag must be a non-empty string")

        protections = data.get("protections", ())
        if isinstance(protections, str) or not isinstance(protections, list | tuple):
            raise ConfigurationError("Cascade protections must be a list of association names")
        names = cast("list[object] | tuple[object, ...]", protections)
        if not all(isinstance(name, str) for name in names):
            raise ConfigurationError("Cascade protections must be a list of association names")

        return cls(
            flag=flag.strip(),
            associations=cast("AssociationSpec | None", data.get("associations")),
            protections=tuple(cast("list[str] | tuple[str, ...]", names)),
        )

    def association_tree(self) -> AssociationTree:
        try:
            tree = AssociationTree.build(self.associations)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid cascade associations: {exc}") from exc
        return tree.map_names(underscore)

    def protected_edges(self) -> frozenset[str]:
        return frozenset(underscore(name) for name in self.protections)

    def resolve(self, introspector: FlagTypeIntrospector) -> CascadeConfig:
        """Classify the flag column once and return the normalized configuration."""

        flag_kind = introspector.flag_kind(self.flag)
        config = CascadeConfig(
            flag=self.flag,
            flag_kind=flag_kind,
            associations=self.association_tree(),
            protected=self.protected_edges(),
        )
        log.debug(
            "Resolved cascade settings: flag=%s (%s), associations=%s, protected=%s",
            config.flag,
            config.flag_kind,
            config.associations.paths(),
            sorted(config.protected),
        )
        return config


def load_cascade_settings(path: Path) -> CascadeSettings:
    """Read the ``[cascade]`` table of a TOML file."""

    with path.open("rb") as handle:
        document = tomllib.load(handle)
    section = document.get(CASCADE_SECTION)
    if not isinstance(section, dict):
        raise MissingConfigurationError(f"Missing [{CASCADE_SECTION}] table in {path}")
    return CascadeSettings.from_mapping(cast("dict[str, object]", section))


def cascade_settings_from_env() -> CascadeSettings:
    """Load the settings file named by ``COFFIN_CASCADE_SETTINGS``."""

    return load_cascade_settings(Path(require_env_var(CASCADE_SETTINGS_ENV)).expanduser())
