import os
from dataclasses import dataclass

from dotenv import load_dotenv
from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL

from .errors import InspectorError, ErrorCodes

load_dotenv()


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise InspectorError(
            ErrorCodes.MISCONFIGURED_CONNECTION,
            f"{name} must be an integer",
            details=raw,
        ) from e


@dataclass
class MySQLConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "test_db"
    connect_timeout: int = 10
    read_timeout: int = 30
    log_level: str = "INFO"
    mcp_port: int = 8001

    @classmethod
    def from_env(cls) -> 'MySQLConfig':
        return cls(
            host=os.getenv("MYSQL_HOST", "localhost"),
            port=_int_env("MYSQL_PORT", "3306"),
            user=os.getenv("MYSQL_USER", "root"),
            password=os.getenv("MYSQL_PASS", ""),
            database=os.getenv("MYSQL_DB", "test_db"),
            connect_timeout=_int_env("MYSQL_CONNECT_TIMEOUT", "10"),
            read_timeout=_int_env("MYSQL_READ_TIMEOUT", "30"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            mcp_port=_int_env("MCP_PORT", "8001"),
        )

    def url(self) -> URL:
        return URL.create(
            drivername="mysql+pymysql",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
            query={"charset": "utf8mb4"},
        )

    def create_engine(self) -> Engine:
        """Build a pooled engine; the caller owns it and disposes of it."""
        return sa_create_engine(
            self.url(),
            pool_pre_ping=True,
            connect_args={
                "connect_timeout": self.connect_timeout,
                "read_timeout": self.read_timeout,
            },
        )
