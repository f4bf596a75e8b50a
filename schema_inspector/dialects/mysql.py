import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pymysql.constants import ER
from sqlalchemy.dialects import mysql as sa_mysql
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from ..base import SchemaInspector
from ..models import (
    Column,
    RawColumn,
    RawColumnRef,
    RawKey,
    RawTable,
    RawTableName,
    Table,
    TableColumnRef,
)

logger = logging.getLogger(__name__)

_preparer = sa_mysql.dialect().identifier_preparer

# Every catalog query is scoped to the schema selected on the connection.
# Column queries join TABLES so view columns never show up.

TABLES_SQL = """
    SELECT TABLE_NAME
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = DATABASE() AND TABLE_TYPE = 'BASE TABLE'
    ORDER BY TABLE_NAME
"""

TABLE_INFO_SQL = """
    SELECT TABLE_NAME, ENGINE, TABLE_SCHEMA, TABLE_COLLATION, TABLE_COMMENT
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = DATABASE() AND TABLE_TYPE = 'BASE TABLE'
"""

HAS_TABLE_SQL = """
    SELECT COUNT(*) AS count
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = DATABASE() AND TABLE_TYPE = 'BASE TABLE' AND TABLE_NAME = :table
"""

COLUMNS_SQL = """
    SELECT c.TABLE_NAME, c.COLUMN_NAME
    FROM information_schema.COLUMNS AS c
    JOIN information_schema.TABLES AS t
        ON t.TABLE_SCHEMA = c.TABLE_SCHEMA
        AND t.TABLE_NAME = c.TABLE_NAME
        AND t.TABLE_TYPE = 'BASE TABLE'
    WHERE c.TABLE_SCHEMA = DATABASE()
"""

COLUMN_INFO_SQL = """
    SELECT
        c.TABLE_NAME,
        c.COLUMN_NAME,
        c.COLUMN_DEFAULT,
        c.DATA_TYPE,
        c.CHARACTER_MAXIMUM_LENGTH,
        c.IS_NULLABLE,
        c.COLUMN_KEY,
        c.EXTRA,
        c.COLLATION_NAME,
        c.COLUMN_COMMENT,
        fk.REFERENCED_TABLE_NAME,
        fk.REFERENCED_COLUMN_NAME,
        fk.CONSTRAINT_NAME,
        rc.UPDATE_RULE,
        rc.DELETE_RULE
    FROM information_schema.COLUMNS AS c
    JOIN information_schema.TABLES AS t
        ON t.TABLE_SCHEMA = c.TABLE_SCHEMA
        AND t.TABLE_NAME = c.TABLE_NAME
        AND t.TABLE_TYPE = 'BASE TABLE'
    LEFT JOIN information_schema.KEY_COLUMN_USAGE AS fk
        ON fk.TABLE_NAME = c.TABLE_NAME
        AND fk.COLUMN_NAME = c.COLUMN_NAME
        AND fk.CONSTRAINT_SCHEMA = c.TABLE_SCHEMA
    LEFT JOIN information_schema.REFERENTIAL_CONSTRAINTS AS rc
        ON rc.TABLE_NAME = fk.TABLE_NAME
        AND rc.CONSTRAINT_NAME = fk.CONSTRAINT_NAME
        AND rc.CONSTRAINT_SCHEMA = fk.CONSTRAINT_SCHEMA
    WHERE c.TABLE_SCHEMA = DATABASE()
"""

HAS_COLUMN_SQL = """
    SELECT COUNT(*) AS count
    FROM information_schema.COLUMNS AS c
    JOIN information_schema.TABLES AS t
        ON t.TABLE_SCHEMA = c.TABLE_SCHEMA
        AND t.TABLE_NAME = c.TABLE_NAME
        AND t.TABLE_TYPE = 'BASE TABLE'
    WHERE c.TABLE_SCHEMA = DATABASE() AND c.TABLE_NAME = :table AND c.COLUMN_NAME = :column
"""

PRIMARY_SQL = "SHOW KEYS FROM {table} WHERE Key_name = 'PRIMARY'"


def _is_missing_table(error: SQLAlchemyError) -> bool:
    if not isinstance(error, DBAPIError) or error.orig is None:
        return False
    args = getattr(error.orig, "args", ())
    return bool(args) and args[0] == ER.NO_SUCH_TABLE


def fold_columns(raw_columns: List[RawColumn]) -> List[Column]:
    """Collapse the per-constraint rows of the column join into one Column each.

    A column listed under several key constraints (say PRIMARY and a foreign
    key) comes back once per constraint. Catalog order is kept.
    """
    grouped: Dict[Tuple[str, str], List[RawColumn]] = {}
    for raw in raw_columns:
        grouped.setdefault((raw.TABLE_NAME, raw.COLUMN_NAME), []).append(raw)

    columns = []
    for rows in grouped.values():
        first = rows[0]
        fk = next((row for row in rows if row.is_foreign_key), None)
        columns.append(Column(
            name=first.COLUMN_NAME,
            table=first.TABLE_NAME,
            type=first.DATA_TYPE,
            default_value=first.COLUMN_DEFAULT,
            max_length=first.CHARACTER_MAXIMUM_LENGTH,
            is_nullable=first.IS_NULLABLE,
            is_primary_key=any(row.is_primary_key for row in rows),
            has_auto_increment=first.EXTRA == "auto_increment",
            foreign_key_table=fk.REFERENCED_TABLE_NAME if fk else None,
            foreign_key_column=fk.REFERENCED_COLUMN_NAME if fk else None,
            on_update=fk.UPDATE_RULE if fk else None,
            on_delete=fk.DELETE_RULE if fk else None,
            comment=first.COLUMN_COMMENT,
        ))
    return columns


class MySQLInspector(SchemaInspector):

    @property
    def dialect(self) -> str:
        return "mysql"

    # Tables

    def tables(self) -> List[str]:
        rows = self._decode(RawTableName, self._fetch_all(TABLES_SQL))
        return [row.TABLE_NAME for row in rows]

    def table_info(self, table: Optional[str] = None) -> Union[List[Table], Optional[Table]]:
        sql = TABLE_INFO_SQL
        params: Dict[str, Any] = {}
        if table is not None:
            sql += " AND TABLE_NAME = :table"
            params["table"] = table
        sql += " ORDER BY TABLE_NAME"

        tables = [raw.to_table() for raw in self._decode(RawTable, self._fetch_all(sql, params))]
        if table is not None:
            return tables[0] if tables else None
        return tables

    def has_table(self, table: str) -> bool:
        return self._fetch_count(HAS_TABLE_SQL, {"table": table}) > 0

    # Columns

    def columns(self, table: Optional[str] = None) -> List[TableColumnRef]:
        sql = COLUMNS_SQL
        params: Dict[str, Any] = {}
        if table is not None:
            sql += " AND c.TABLE_NAME = :table"
            params["table"] = table
        sql += " ORDER BY c.TABLE_NAME, c.ORDINAL_POSITION"

        return [raw.to_ref() for raw in self._decode(RawColumnRef, self._fetch_all(sql, params))]

    def column_info(
        self, table: Optional[str] = None, column: Optional[str] = None
    ) -> Union[List[Column], Optional[Column]]:
        if column is not None and table is None:
            raise ValueError("column_info() needs a table when a column is given")

        sql = COLUMN_INFO_SQL
        params: Dict[str, Any] = {}
        if table is not None:
            sql += " AND c.TABLE_NAME = :table"
            params["table"] = table
        if column is not None:
            sql += " AND c.COLUMN_NAME = :column"
            params["column"] = column
        sql += " ORDER BY c.TABLE_NAME, c.ORDINAL_POSITION"

        columns = fold_columns(self._decode(RawColumn, self._fetch_all(sql, params)))
        if column is not None:
            return columns[0] if columns else None
        return columns

    def has_column(self, table: str, column: str) -> bool:
        return self._fetch_count(HAS_COLUMN_SQL, {"table": table, "column": column}) > 0

    def primary(self, table: str) -> Optional[str]:
        # text() reads ":name" as a bind parameter, so colons in the name are escaped
        quoted = _preparer.quote_identifier(table).replace(":", "\\:")
        sql = PRIMARY_SQL.format(table=quoted)
        try:
            rows = self._rows(sql)
        except SQLAlchemyError as e:
            if _is_missing_table(e):
                logger.info(f"No primary key lookup possible, table '{table}' does not exist")
                return None
            raise self._failure(e) from e

        keys = sorted(self._decode(RawKey, rows), key=lambda key: key.Seq_in_index)
        if not keys:
            return None
        return keys[0].Column_name
