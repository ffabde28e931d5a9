"""
Generic CRUD service for SQLAlchemy async ORM models.

The service sits between controllers and the ORM. It standardizes how records are
read and mutated (find-by-id, create-from-input, update-from-input, delete, offset
pagination, add-to-relationship) and guarantees that callers only ever observe the
domain faults from `crudkit.exceptions` - never raw SQLAlchemy errors.

Each call is independent: the service holds a session reference, a logger and the
message templates, nothing else. It flushes but never commits; transaction control
belongs to whoever owns the session.

    service = CRUDService(session)
    widget = await service.create(Widget, {"name": "test"}, "ab43ca3434f324acde")
    page = await service.retrieve_all(Widget, page=2, per_page=10)
    await session.commit()
"""
import logging
import operator
from functools import partial
from typing import Any, Callable, Iterable, Mapping, Sequence

from pydantic import ValidationError
from sqlalchemy import Select, func, inspect as sa_inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapper, load_only, selectinload

from crudkit.config.messages import MessageTemplates
from crudkit.config.settings import get_settings
from crudkit.core.logging.context import build_logging_context
from crudkit.exceptions.base import (
    DeleteFailedError,
    InvalidArgumentError,
    InvalidFieldError,
    NotFoundError,
    OperationFailedError,
    SaveFailedError,
)
from crudkit.exceptions.mapper import storage_error_handler
from crudkit.schemas.pagination import PageResult, WhereClause
from crudkit.validators.model_validators import (
    find_unknown_fields,
    find_unknown_relationships,
    pagination_problem,
    primary_key_attribute,
    resolve_mapper,
)

# where-clause operator -> column expression builder
OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": operator.eq,
    "==": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "like": lambda column, value: column.like(value),
    "not like": lambda column, value: column.not_like(value),
    "in": lambda column, value: column.in_(value),
    "not in": lambda column, value: column.not_in(value),
}


class CRUDService:
    """
    Create / retrieve / update / delete / paginate any mapped model.

    Args:
        db: the AsyncSession all storage operations go through
        templates: log message templates; defaults to the ones configured in Settings
        logger: logging collaborator; defaults to this module's logger
        include_trace: attach stack traces to storage-fault logs; defaults to
            Settings.LOG_INCLUDE_TRACE
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        templates: MessageTemplates | None = None,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        include_trace: bool | None = None,
    ):
        settings = get_settings()
        self.db = db
        self.templates = templates if templates is not None else MessageTemplates.from_settings(settings)
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.include_trace = settings.LOG_INCLUDE_TRACE if include_trace is None else include_trace

    # =================================================================================================================
    # Read (single record)
    # =================================================================================================================

    async def retrieve(
        self,
        model: Any,
        entity_id: Any,
        fields: Sequence[str] | None = None,
        relationships: Sequence[str] | None = None,
    ) -> Any:
        """
        Retrieve a record by primary key.

        Args:
            model: mapped class, mapped instance, or a Select over a mapped class
                (to look up within a pre-filtered query)
            entity_id: primary key value
            fields: column attributes to load; None (or ["*"]) loads everything
            relationships: relationship names to eager-load

        Returns:
            The record. Never None.

        Raises:
            NotFoundError: the record does not exist, or the lookup itself failed
                (the storage error is chained as __cause__)
            InvalidFieldError: unknown field or relationship names
            InvalidArgumentError: `model` is not something that maps to a table
        """
        mapper = resolve_mapper(model)
        model_name = mapper.class_.__name__
        message = partial(self.templates.render, "not_found", model_name, entity_id)

        pk = primary_key_attribute(mapper)
        stmt = model if isinstance(model, Select) else select(mapper.class_)
        stmt = stmt.where(getattr(mapper.class_, pk) == entity_id)
        options = self._load_options(mapper, fields, relationships)
        if options:
            stmt = stmt.options(*options)

        async with storage_error_handler(
            self.db,
            NotFoundError,
            model_name=model_name,
            rollback=False,
            on_error=lambda exc: self._log_storage_fault(message, exc, {"id": entity_id}),
        ):
            result = await self.db.execute(stmt)
            entity = result.scalar_one_or_none()

        if entity is None:
            self.logger.info(message(), extra={"context": {"id": entity_id}})
            raise NotFoundError(f"{model_name} with id {entity_id} not found")

        return entity

    # =================================================================================================================
    # Create / Update
    # =================================================================================================================

    async def create(self, entity: Any, data: Mapping[str, Any], entity_id: Any) -> Any:
        """
        Create a record from input data.

        `entity` may be a mapped class (a new instance is created) or a fresh
        instance. The id is assigned first, then every key of `data`, then the
        record is added and flushed.

        Raises:
            InvalidFieldError: `data` contains keys that are not attributes of the model
            SaveFailedError: the record was not persisted, or the flush failed
                (integrity violations carry reason / fields / constraint)
        """
        mapper = self._mapper_for_write(entity, "create")
        model_name = mapper.class_.__name__
        pk = primary_key_attribute(mapper)
        message = partial(self.templates.render, "create_failed", model_name, self._caller("create"))
        payload = {**data, pk: entity_id}

        self._reject_unknown_input(mapper, data, message, payload)

        if isinstance(entity, type):
            entity = mapper.class_()

        setattr(entity, pk, entity_id)
        for key, value in data.items():
            setattr(entity, key, value)

        await self._persist(entity, model_name, message, payload)

        self.logger.debug("crud.create.success", extra={"model": model_name, "id": entity_id})
        return entity

    async def update(self, model: Any, data: Mapping[str, Any], entity_id: Any) -> Any:
        """
        Update an existing record with input data.

        The record is looked up with `retrieve()` first, so a missing id raises
        NotFoundError and nothing is written.

        Raises:
            NotFoundError: no record with this id
            InvalidFieldError: `data` contains keys that are not attributes of the model
            SaveFailedError: the record was not persisted, or the flush failed
        """
        mapper = self._mapper_for_write(model, "update")
        model_name = mapper.class_.__name__
        pk = primary_key_attribute(mapper)
        message = partial(self.templates.render, "update_failed", model_name, entity_id,
                          self._caller("update"))
        payload = {**data, pk: entity_id}

        self._reject_unknown_input(mapper, data, message, payload)

        entity = await self.retrieve(mapper.class_, entity_id)

        for key, value in data.items():
            setattr(entity, key, value)

        await self._persist(entity, model_name, message, payload)

        self.logger.debug(
            "crud.update.success",
            extra={"model": model_name, "id": entity_id, "updated_keys": sorted(data.keys())},
        )
        return entity

    # =================================================================================================================
    # Delete
    # =================================================================================================================

    async def delete(self, model: Any, entity_id: Any) -> bool:
        """
        Delete an existing record.

        Returns:
            True once the deletion has been flushed.

        Raises:
            NotFoundError: no record with this id (nothing is deleted)
            DeleteFailedError: the record was not deleted, or the flush failed
        """
        mapper = self._mapper_for_write(model, "delete")
        model_name = mapper.class_.__name__
        message = partial(self.templates.render, "delete_failed", model_name, entity_id)

        entity = await self.retrieve(mapper.class_, entity_id)

        async with storage_error_handler(
            self.db,
            DeleteFailedError,
            model_name=model_name,
            on_error=lambda exc: self._log_storage_fault(message, exc, {"id": entity_id}),
        ):
            await self.db.delete(entity)
            await self.db.flush()

        if not sa_inspect(entity).was_deleted:
            self.logger.error(message(), extra={"context": {"id": entity_id}})
            raise DeleteFailedError(f"There was an error deleting the {model_name}")

        self.logger.debug("crud.delete.success", extra={"model": model_name, "id": entity_id})
        return True

    # =================================================================================================================
    # Read (paginated)
    # =================================================================================================================

    async def retrieve_all(
        self,
        model: Any,
        page: int = 1,
        per_page: int = 20,
        where: WhereClause | Mapping[str, Any] | None = None,
        fields: Sequence[str] | None = None,
    ) -> PageResult:
        """
        Retrieve one page of records matching `where`.

        Args:
            model: mapped class, or a Select over a mapped class to paginate
            page: 1-based page number
            per_page: page size; -1 disables pagination and returns every match
            where: {"field", "operator", "value"}; defaults to `id != NULL` (all rows)
            fields: column attributes to load; None (or ["*"]) loads everything

        Returns:
            PageResult with total = number of matches and
            total_pages = ceil(total / per_page).

        Raises:
            InvalidArgumentError: page / per_page are not integers (checked before
                any query is issued), are out of range, or `where` is malformed
            InvalidFieldError: unknown filter field or `fields` entries
            OperationFailedError: the count or the fetch failed
        """
        problem = pagination_problem(page, per_page)
        if problem:
            self.logger.error(
                self.templates.render("retrieval_error"),
                extra={"context": {"page": page, "per_page": per_page}},
            )
            raise InvalidArgumentError(problem, fields=["page", "per_page"])

        mapper = resolve_mapper(model)
        model_name = mapper.class_.__name__
        clause = self._where_clause(where)
        condition = self._condition(mapper, clause)
        options = self._load_options(mapper, fields, None)

        if isinstance(model, Select):
            base = model.where(condition)
        else:
            pk = primary_key_attribute(mapper)
            # stable ordering so consecutive pages neither overlap nor skip rows
            base = select(mapper.class_).where(condition).order_by(getattr(mapper.class_, pk))

        offset = (page - 1) * per_page

        def log_failure(exc: SQLAlchemyError) -> None:
            self._log_storage_fault(
                partial(self.templates.render, "retrieval_error"),
                exc,
                {"model": model_name, "page": page, "per_page": per_page, "where": clause.model_dump()},
            )

        async with storage_error_handler(
            self.db,
            OperationFailedError,
            model_name=model_name,
            rollback=False,
            on_error=log_failure,
        ):
            count_stmt = select(func.count()).select_from(base.order_by(None).subquery())
            total = await self.db.scalar(count_stmt) or 0

            stmt = base.options(*options) if options else base
            if per_page != -1:
                stmt = stmt.limit(per_page).offset(offset)

            result = await self.db.execute(stmt)
            models = list(result.scalars().all())

        self.logger.debug(
            "crud.retrieve_all.success",
            extra={"model": model_name, "page": page, "per_page": per_page, "total": total},
        )

        return PageResult(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=PageResult.count_pages(total, per_page),
            models=models,
        )

    # =================================================================================================================
    # Relationships
    # =================================================================================================================

    async def add_relationship(self, entity: Any, related: Any, relationship_name: str) -> Any:
        """
        Associate `related` with `entity` through the named relationship and save it.

        Collections get `related` appended; many-to-one / one-to-one relationships
        get it assigned.

        Returns:
            The saved related record.

        Raises:
            InvalidArgumentError: `entity` is not a model instance
            InvalidFieldError: `relationship_name` is not a relationship of the model
            SaveFailedError: the related record was not persisted, or the flush failed
        """
        if isinstance(entity, (type, Select)):
            raise InvalidArgumentError("add_relationship requires a model instance")
        mapper = resolve_mapper(entity)
        model_name = mapper.class_.__name__

        unknown = find_unknown_relationships(mapper, [relationship_name])
        if unknown:
            raise InvalidFieldError(f"Unknown relationship(s) for {model_name}: {', '.join(unknown)}",
                                    fields=unknown)

        prop = mapper.relationships[relationship_name]
        entity_id = getattr(entity, primary_key_attribute(mapper), None)
        message = partial(self.templates.render, "update_failed", model_name, entity_id,
                          self._caller("add_relationship"))
        context = {"id": entity_id, "relationship": relationship_name}
        state = sa_inspect(entity)

        async with storage_error_handler(
            self.db,
            SaveFailedError,
            model_name=model_name,
            on_error=lambda exc: self._log_storage_fault(message, exc, context),
        ):
            # async sessions cannot lazy-load on attribute access
            if state.persistent and relationship_name in state.unloaded:
                await self.db.refresh(entity, attribute_names=[relationship_name])

            if prop.uselist:
                getattr(entity, relationship_name).append(related)
            else:
                setattr(entity, relationship_name, related)

            self.db.add(entity)
            await self.db.flush()

        if not sa_inspect(related).persistent:
            self.logger.error(message(), extra={"context": context})
            raise SaveFailedError(f"There was an error saving the {relationship_name} of {model_name}")

        return related

    # =================================================================================================================
    # Helpers
    # =================================================================================================================

    def _caller(self, method: str) -> str:
        return f"{type(self).__name__}.{method}"

    def _log_storage_fault(
        self,
        message: Callable[[], str],
        exc: SQLAlchemyError,
        *extra: Mapping[str, Any],
    ) -> None:
        self.logger.error(
            message(),
            extra={"context": build_logging_context(exc, extra, self.include_trace)},
        )

    @staticmethod
    def _mapper_for_write(target: Any, operation: str) -> Mapper:
        if isinstance(target, Select):
            raise InvalidArgumentError(f"{operation} requires a model class or instance, not a statement")
        return resolve_mapper(target)

    def _reject_unknown_input(
        self,
        mapper: Mapper,
        data: Mapping[str, Any],
        message: Callable[[], str],
        payload: Mapping[str, Any],
    ) -> None:
        unknown = find_unknown_fields(mapper, data.keys(), include_relationships=True)
        if unknown:
            self.logger.error(message(), extra={"context": {**payload, "invalid_fields": unknown}})
            raise InvalidFieldError(
                f"Unknown field(s) for {mapper.class_.__name__}: {', '.join(unknown)}", fields=unknown
            )

    async def _persist(
        self,
        entity: Any,
        model_name: str,
        message: Callable[[], str],
        payload: Mapping[str, Any],
    ) -> None:
        async with storage_error_handler(
            self.db,
            SaveFailedError,
            model_name=model_name,
            on_error=lambda exc: self._log_storage_fault(message, exc, payload),
        ):
            self.db.add(entity)
            await self.db.flush()

        if not sa_inspect(entity).persistent:
            self.logger.error(message(), extra={"context": dict(payload)})
            raise SaveFailedError(f"There was an error saving the {model_name}")

    def _load_options(
        self,
        mapper: Mapper,
        fields: Sequence[str] | None,
        relationships: Iterable[str] | None,
    ) -> list:
        options = []
        model = mapper.class_

        if fields and "*" not in fields:
            unknown = find_unknown_fields(mapper, fields)
            if unknown:
                raise InvalidFieldError(f"Unknown field(s) for {model.__name__}: {', '.join(unknown)}",
                                        fields=unknown)
            options.append(load_only(*(getattr(model, name) for name in fields)))

        names = list(relationships or ())
        unknown = find_unknown_relationships(mapper, names)
        if unknown:
            raise InvalidFieldError(f"Unknown relationship(s) for {model.__name__}: {', '.join(unknown)}",
                                    fields=unknown)
        options.extend(selectinload(getattr(model, name)) for name in names)

        return options

    @staticmethod
    def _where_clause(where: WhereClause | Mapping[str, Any] | None) -> WhereClause:
        if where is None:
            return WhereClause()
        if isinstance(where, WhereClause):
            return where
        try:
            return WhereClause(**where)
        except (TypeError, ValidationError) as exc:
            raise InvalidArgumentError(f"Invalid where clause: {where!r}") from exc

    @staticmethod
    def _condition(mapper: Mapper, clause: WhereClause):
        model = mapper.class_
        unknown = find_unknown_fields(mapper, [clause.field])
        if unknown:
            raise InvalidFieldError(f"Unknown field(s) for {model.__name__}: {clause.field}", fields=unknown)

        build = OPERATORS.get(clause.operator.strip().lower())
        if build is None:
            raise InvalidArgumentError(f"Unsupported where operator: {clause.operator!r}")

        try:
            return build(getattr(model, clause.field), clause.value)
        except SQLAlchemyError as exc:
            # e.g. "in" with a scalar value
            raise InvalidArgumentError(
                f"Invalid value for where operator {clause.operator!r}: {clause.value!r}",
                fields=[clause.field],
            ) from exc
