"""Save-lifecycle entry point for cascading soft delete."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .compare import generate_patch
from .merge import apply_patch
from .stamping import SystemClock, Tombstoner

if TYPE_CHECKING:
    from coffin.domain.model import Record
    from coffin.domain.ports import AggregateLoader, AggregateRepository, SupportsBeforeSave

    from .config import CascadeConfig
    from .stamping import Clock

log = logging.getLogger(__name__)


class CascadeSoftDelete:
    """Tombstones children that a modified aggregate dropped before it is written.

    ``on_before_save`` loads the stored version of the aggregate, diffs it against
    the record about to be saved and merges every removed child back in with its
    deletion flag set. The caller then writes the augmented record as usual.
    Records whose root row was never stored, with or without an identifier, are
    left alone.
    """

    def __init__(
        self,
        config: CascadeConfig,
        loader: AggregateLoader,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self._loader = loader
        self._clock = clock or SystemClock()

    @classmethod
    def attach(
        cls,
        repository: AggregateRepository,
        config: CascadeConfig,
        *,
        clock: Clock | None = None,
    ) -> CascadeSoftDelete:
        """Register a new instance as a before-save listener of ``repository``."""

        behaviour = cls(config, repository, clock=clock)
        behaviour.listen_on(repository)
        return behaviour

    def listen_on(self, host: SupportsBeforeSave) -> None:
        host.add_before_save_listener(self.on_before_save)

    def on_before_save(self, contextual: Record) -> None:
        identifier = contextual.id
        if identifier is None:
            log.debug("Skipping cascade soft delete for new record")
            return
        if not self._loader.exists(identifier):
            log.debug("Skipping cascade soft delete for unsaved id=%r", identifier)
            return

        associations = self.config.associations
        persistent = self._loader.load(identifier, associations)
        tombstoner = Tombstoner(
            flag=self.config.flag,
            flag_kind=self.config.flag_kind,
            protection=self.config.protection,
            clock=self._clock,
        )
        patch = generate_patch(
            persistent,
            contextual,
            associations=associations,
            tombstoner=tombstoner,
        )
        apply_patch(contextual, patch, associations=associations)
        log.info(
            "Cascade soft delete for id=%r: tombstoned=%s, associations=%s",
            identifier,
            tombstoner.stamped,
            ",".join(associations.paths()) or "-",
        )

