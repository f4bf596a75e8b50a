import json
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .config import MySQLConfig
from .dialects.mysql import MySQLInspector
from .errors import InspectorError, ErrorCodes

config = MySQLConfig.from_env()

logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Engine is created lazily so importing the module does not need a reachable server
_inspector: Optional[MySQLInspector] = None

mcp = FastMCP("MySQL Schema Inspector", port=config.mcp_port)


def get_inspector() -> MySQLInspector:
    global _inspector
    if _inspector is None:
        _inspector = MySQLInspector(config.create_engine())
        logger.info(f"Inspecting database: {config.database} at {config.host}")
    return _inspector


def not_found(code: ErrorCodes, message: str) -> str:
    return json.dumps({"error": message, "code": code.value})


def handle_error(error: InspectorError) -> str:
    """Format an inspector failure for the MCP response"""
    payload: Dict[str, Any] = {"error": error.message, "code": error.code.value}
    if error.details:
        payload["details"] = error.details
    return json.dumps(payload)


@mcp.tool()
async def list_tables() -> str:
    """Return a JSON array of all base table names in the database."""
    try:
        return json.dumps(get_inspector().tables())
    except InspectorError as e:
        return handle_error(e)

@mcp.tool()
async def table_info(table_name: str = None) -> str:
    """
    Return engine, collation and comment for one table, or for every table
    when no table name is given.
    """
    try:
        result = get_inspector().table_info(table_name)
        if table_name is None:
            return json.dumps([table.model_dump(by_alias=True) for table in result])
        if result is None:
            return not_found(ErrorCodes.TABLE_NOT_FOUND, f"Table '{table_name}' does not exist")
        return json.dumps(result.model_dump(by_alias=True))
    except InspectorError as e:
        return handle_error(e)

@mcp.tool()
async def has_table(table_name: str) -> str:
    """Return whether a base table with this name exists."""
    try:
        return json.dumps({"table": table_name, "exists": get_inspector().has_table(table_name)})
    except InspectorError as e:
        return handle_error(e)

@mcp.tool()
async def list_columns(table_name: str = None) -> str:
    """Return {table, column} pairs for the database or for one table."""
    try:
        refs = get_inspector().columns(table_name)
        return json.dumps([ref.model_dump() for ref in refs])
    except InspectorError as e:
        return handle_error(e)

@mcp.tool()
async def column_info(table_name: str = None, column_name: str = None) -> str:
    """
    Return full column metadata: type, default, nullability, primary key,
    auto increment and foreign key target. Narrow with a table name, and
    with a column name to get a single column.
    """
    if column_name is not None and table_name is None:
        return handle_error(InspectorError(ErrorCodes.INVALID_ARGUMENT, "column_name requires table_name"))
    try:
        result = get_inspector().column_info(table_name, column_name)
        if column_name is None:
            return json.dumps([column.model_dump() for column in result], default=str)
        if result is None:
            return not_found(
                ErrorCodes.COLUMN_NOT_FOUND,
                f"Column '{column_name}' does not exist in table '{table_name}'",
            )
        return json.dumps(result.model_dump(), default=str)
    except InspectorError as e:
        return handle_error(e)

@mcp.tool()
async def has_column(table_name: str, column_name: str) -> str:
    """Return whether the table has a column with this name."""
    try:
        exists = get_inspector().has_column(table_name, column_name)
        return json.dumps({"table": table_name, "column": column_name, "exists": exists})
    except InspectorError as e:
        return handle_error(e)

@mcp.tool()
async def primary_key(table_name: str) -> str:
    """Return the primary key column of a table."""
    try:
        column = get_inspector().primary(table_name)
        if column is None:
            return not_found(ErrorCodes.NO_PRIMARY_KEY, f"Table '{table_name}' has no primary key")
        return json.dumps({"table": table_name, "column": column})
    except InspectorError as e:
        return handle_error(e)

if __name__ == "__main__":
    mcp.run(transport="streamable-http")
