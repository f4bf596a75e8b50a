import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import InspectorError, ErrorCodes
from .models import Column, Table, TableColumnRef

logger = logging.getLogger(__name__)

RowModel = TypeVar("RowModel", bound=BaseModel)

class SchemaInspector(ABC):
    """Read-only view over the catalog of the schema selected on ``bind``.

    ``bind`` is a SQLAlchemy Engine or Connection owned by the caller. With an
    Engine each operation borrows a pooled connection for its single query;
    with a Connection the query runs on it directly.
    """

    def __init__(self, bind: Union[Engine, Connection]):
        self.bind = bind

    @property
    @abstractmethod
    def dialect(self) -> str:
        pass

    # Tables

    @abstractmethod
    def tables(self) -> List[str]:
        """Names of all base tables in the current schema."""

    @abstractmethod
    def table_info(self, table: Optional[str] = None) -> Union[List[Table], Optional[Table]]:
        """All tables, or the named table (None when it does not exist)."""

    @abstractmethod
    def has_table(self, table: str) -> bool:
        pass

    # Columns

    @abstractmethod
    def columns(self, table: Optional[str] = None) -> List[TableColumnRef]:
        """(table, column) pairs for the schema, or for one table."""

    @abstractmethod
    def column_info(
        self, table: Optional[str] = None, column: Optional[str] = None
    ) -> Union[List[Column], Optional[Column]]:
        """Full column metadata; a single Column (or None) when ``column`` is given."""

    @abstractmethod
    def has_column(self, table: str, column: str) -> bool:
        pass

    @abstractmethod
    def primary(self, table: str) -> Optional[str]:
        """Primary key column of ``table``, or None if it has none."""

    # Query helpers

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if isinstance(self.bind, Engine):
            with self.bind.connect() as conn:
                yield conn
        else:
            yield self.bind

    def _rows(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Run one statement and return its rows as plain dicts. Driver errors pass through."""
        logger.debug(f"{self.dialect} catalog query: {' '.join(sql.split())} params={params}")
        with self._connect() as conn:
            result = conn.execute(text(sql), params or {})
            return [dict(row) for row in result.mappings()]

    def _fetch_all(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            return self._rows(sql, params)
        except SQLAlchemyError as e:
            raise self._failure(e) from e

    def _fetch_count(self, sql: str, params: Optional[Dict[str, Any]] = None) -> int:
        rows = self._fetch_all(sql, params)
        if not rows or rows[0].get("count") is None:
            raise InspectorError(ErrorCodes.UNEXPECTED_ROW, "Count query returned no count")
        return int(rows[0]["count"])

    def _failure(self, error: SQLAlchemyError) -> InspectorError:
        logger.error(f"{self.dialect} catalog query failed: {error}")
        return InspectorError(
            ErrorCodes.CONNECTION_FAILURE,
            "Catalog query failed",
            details=str(error),
        )

    def _decode(self, model: Type[RowModel], rows: List[Dict[str, Any]]) -> List[RowModel]:
        try:
            return [model.model_validate(row) for row in rows]
        except ValidationError as e:
            logger.error(f"Unexpected {model.__name__} row from {self.dialect} catalog: {e}")
            raise InspectorError(
                ErrorCodes.UNEXPECTED_ROW,
                f"Catalog returned a malformed {model.__name__} row",
                details=str(e),
            ) from e
