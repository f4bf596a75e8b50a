from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Normalized results

class Table(BaseModel):
    """One base table.

    The schema name lives on ``schema_name`` (alias ``schema`` for input and
    ``model_dump(by_alias=True)``). ``table.schema`` is the inherited pydantic
    method, not the value.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    schema_name: str = Field(alias="schema")
    comment: Optional[str] = None
    collation: str
    engine: str

class Column(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    table: str
    type: str
    default_value: Any = None
    max_length: Optional[int] = None
    is_nullable: bool = True
    is_primary_key: bool = False
    has_auto_increment: bool = False
    foreign_key_table: Optional[str] = None
    foreign_key_column: Optional[str] = None
    on_update: Optional[str] = None
    on_delete: Optional[str] = None
    comment: Optional[str] = None

    @model_validator(mode="after")
    def check_foreign_key(self) -> "Column":
        if (self.foreign_key_table is None) != (self.foreign_key_column is None):
            raise ValueError("foreign_key_table and foreign_key_column must be set together")
        if self.foreign_key_table is None and (self.on_update or self.on_delete):
            raise ValueError("referential actions require a foreign key")
        return self

class TableColumnRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    table: str
    column: str

# Raw catalog rows, one model per catalog query

class RawTableName(BaseModel):
    TABLE_NAME: str

class RawTable(BaseModel):
    TABLE_NAME: str
    TABLE_SCHEMA: str
    TABLE_COMMENT: Optional[str] = None
    ENGINE: str
    TABLE_COLLATION: str

    def to_table(self) -> Table:
        return Table(
            name=self.TABLE_NAME,
            schema=self.TABLE_SCHEMA,
            comment=self.TABLE_COMMENT,
            collation=self.TABLE_COLLATION,
            engine=self.ENGINE,
        )

class RawColumn(BaseModel):
    TABLE_NAME: str
    COLUMN_NAME: str
    COLUMN_DEFAULT: Any = None
    DATA_TYPE: str
    CHARACTER_MAXIMUM_LENGTH: Optional[int] = None
    IS_NULLABLE: bool
    COLUMN_KEY: str = ""
    EXTRA: str = ""
    COLLATION_NAME: Optional[str] = None
    COLUMN_COMMENT: Optional[str] = None
    REFERENCED_TABLE_NAME: Optional[str] = None
    REFERENCED_COLUMN_NAME: Optional[str] = None
    CONSTRAINT_NAME: Optional[str] = None
    UPDATE_RULE: Optional[str] = None
    DELETE_RULE: Optional[str] = None

    @field_validator("IS_NULLABLE", mode="before")
    @classmethod
    def parse_yes_no(cls, value: Any) -> Any:
        # information_schema reports nullability as 'YES' / 'NO'
        if isinstance(value, str):
            if value.upper() == "YES":
                return True
            if value.upper() == "NO":
                return False
            raise ValueError(f"unexpected IS_NULLABLE value {value!r}")
        return value

    @property
    def is_primary_key(self) -> bool:
        return self.CONSTRAINT_NAME == "PRIMARY"

    @property
    def is_foreign_key(self) -> bool:
        return self.REFERENCED_TABLE_NAME is not None

class RawColumnRef(BaseModel):
    TABLE_NAME: str
    COLUMN_NAME: str

    def to_ref(self) -> TableColumnRef:
        return TableColumnRef(table=self.TABLE_NAME, column=self.COLUMN_NAME)

class RawKey(BaseModel):
    """One row of SHOW KEYS."""

    Table: str
    Key_name: str
    Seq_in_index: int
    Column_name: Optional[str] = None
