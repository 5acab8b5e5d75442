"""SQLAlchemy-backed units of work for aggregate repositories."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from coffin.config.storage import get_database_config
from coffin.domain.cascade import CascadeSoftDelete
from coffin.domain.ports.unit_of_work import AggregateRepositoryCollection

from .repositories import SqlAlchemyAggregateRepository

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from coffin.domain.cascade import CascadeConfig, Clock

    from .schema import AggregateSchema

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(frozen=True, slots=True)
class CascadeRegistration:
    config: CascadeConfig
    clock: Clock | None = None


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None
    schema: AggregateSchema | None = None
    cascades: dict[str, list[CascadeRegistration]] = field(
        default_factory=dict["str", "list[CascadeRegistration]"]
    )

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call coffin.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory

    @property
    def configured_schema(self) -> AggregateSchema:
        if self.schema is None:
            raise StartupError("SQLAlchemy adapter has no aggregate schema configured")
        return self.schema


_STATE = _AdapterState()


def startup(
    *,
    schema: AggregateSchema,
    engine: Engine | None = None,
    database_uri: str | None = None,
    create_tables: bool = True,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, tables, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    schema.validate()
    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    if create_tables:
        log.info("Creating aggregate tables")
        schema.metadata.create_all(resolved_engine)

    _STATE.engine = resolved_engine
    _STATE.schema = schema
    _STATE.cascades.clear()


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def configured_schema() -> AggregateSchema:
    return _STATE.configured_schema


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.schema = None
    _STATE.cascades.clear()


def register_cascade(
    table_name: str,
    config: CascadeConfig,
    *,
    clock: Clock | None = None,
) -> None:
    """Attach cascading soft delete to every repository built for ``table_name``."""

    _ = _STATE.configured_schema[table_name]
    _STATE.cascades.setdefault(table_name, []).append(CascadeRegistration(config, clock))


class SqlAlchemyAggregateRepositories(AggregateRepositoryCollection):
    """Repositories keyed by root table name, built on first access."""

    def __init__(
        self,
        session: Session,
        schema: AggregateSchema,
        cascades: dict[str, list[CascadeRegistration]] | None = None,
    ) -> None:
        self._session = session
        self._schema = schema
        self._cascades = cascades or {}
        self._repositories: dict[str, SqlAlchemyAggregateRepository] = {}

    def __getitem__(self, table_name: str) -> SqlAlchemyAggregateRepository:
        repository = self._repositories.get(table_name)
        if repository is None:
            repository = SqlAlchemyAggregateRepository(self._session, self._schema, table_name)
            for registration in self._cascades.get(table_name, ()):
                CascadeSoftDelete.attach(repository, registration.config, clock=registration.clock)
            self._repositories[table_name] = repository
        return repository


class SqlAlchemyUnitOfWork:
    """Unit of work managing one SQLAlchemy session and its aggregate repositories."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._schema = _STATE.configured_schema
        self._session: Session | None = None
        self._repositories: SqlAlchemyAggregateRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self.session = self.session_factory()
        self._repositories = SqlAlchemyAggregateRepositories(
            self.session,
            self._schema,
            {name: list(entries) for name, entries in _STATE.cascades.items()},
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> SqlAlchemyAggregateRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


if TYPE_CHECKING:
    from coffin.domain.ports.unit_of_work import AggregateUnitOfWork

    _uow_check: AggregateUnitOfWork = SqlAlchemyUnitOfWork()
