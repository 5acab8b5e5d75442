"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import INFO, getLogger
from typing import TYPE_CHECKING

from coffin.adapters.sqlalchemy import (
    SqlAlchemyFlagTypeIntrospector,
    SqlAlchemyUnitOfWork,
    configured_schema,
    register_cascade,
    startup,
)
from coffin.common.logging import configure_logging
from coffin.config.cascade import CascadeSettings, cascade_settings_from_env
from coffin.domain.cascade import CascadeSoftDelete
from coffin.domain.model import AssociationTree
from coffin.domain.ports.unit_of_work import AggregateUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.engine import Engine

    from coffin.adapters.sqlalchemy import AggregateSchema, SqlAlchemyAggregateRepository
    from coffin.domain.cascade import CascadeConfig, Clock
    from coffin.domain.model import Identifier, Record

UnitOfWorkFactory = Callable[[], AggregateUnitOfWork]


log = getLogger(__name__)


def enable_cascade_soft_delete(
    repository: SqlAlchemyAggregateRepository,
    settings: CascadeSettings | None = None,
    *,
    clock: Clock | None = None,
) -> CascadeSoftDelete:
    """Resolve ``settings`` against the repository's table and attach the behaviour."""

    config = (settings or CascadeSettings()).resolve(repository.flag_introspector())
    return CascadeSoftDelete.attach(repository, config, clock=clock)


def configure_cascade_soft_delete(
    table_name: str,
    settings: CascadeSettings | None = None,
    *,
    clock: Clock | None = None,
) -> CascadeConfig:
    """Enable cascading soft delete for every unit of work started afterwards."""

    table = configured_schema()[table_name].table
    config = (settings or CascadeSettings()).resolve(SqlAlchemyFlagTypeIntrospector(table))
    register_cascade(table_name, config, clock=clock)
    log.info(
        "Enabled cascade soft delete on %s: flag=%s (%s), associations=%s, protected=%s",
        table_name,
        config.flag,
        config.flag_kind,
        ",".join(config.associations.paths()) or "-",
        ",".join(sorted(config.protected)) or "-",
    )
    return config


def start_application(
    schema: AggregateSchema,
    *,
    cascade_tables: Sequence[str] = (),
    settings: CascadeSettings | None = None,
    engine: Engine | None = None,
    database_uri: str | None = None,
    clock: Clock | None = None,
    log_level: int = INFO,
    force: bool = False,
) -> dict[str, CascadeConfig]:
    """Configure logging, start the SQLAlchemy adapter and enable cascades.

    When ``cascade_tables`` is given without ``settings``, the settings file is
    read from the ``COFFIN_CASCADE_SETTINGS`` environment variable.
    """

    configure_logging(level=log_level, force=force)
    startup(schema=schema, engine=engine, database_uri=database_uri, force=force)
    if not cascade_tables:
        return {}
    effective_settings = settings or cascade_settings_from_env()
    return {
        table_name: configure_cascade_soft_delete(table_name, effective_settings, clock=clock)
        for table_name in cascade_tables
    }


def save_aggregate(

    table_name: str,
    record: Record,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Record:
    """Save one aggregate in its own unit of work and commit."""

    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    with effective_uow() as uow:
        saved = uow.repositories[table_name].save(record)
        uow.commit()
    log.info(f"Saved {table_name} aggregate id={saved.id!r}")
    return saved


def load_aggregate(
    table_name: str,
    identifier: Identifier,
    *paths: str,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Record:
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    with effective_uow() as uow:
        return uow.repositories[table_name].load(identifier, AssociationTree.from_paths(*paths))
