"""
Inkwell Core Types
------------------
Pydantic models and enums shared by the storage engine, the auth resolver
and the tool layer.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Row = Dict[str, Any]

FilterOp = Literal["eq", "neq", "gt", "gte", "lt", "lte", "like", "ilike", "is", "in", "cs"]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_identifier(name: str) -> str:
    """Reject anything that is not a bare SQL identifier."""
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


class Role(str, Enum):
    OWNER = "owner"
    PUBLIC = "public"


class AuthContext(BaseModel):
    role: Role

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER


class Filter(BaseModel):
    """A single column/operator/value predicate."""
    column: str
    op: FilterOp
    value: Any = None

    @field_validator("column")
    @classmethod
    def _check_column(cls, value: str) -> str:
        return validate_identifier(value)


class OrderBy(BaseModel):
    column: str
    direction: Literal["asc", "desc"] = "asc"
    nulls: Optional[Literal["first", "last"]] = None

    @field_validator("column")
    @classmethod
    def _check_column(cls, value: str) -> str:
        return validate_identifier(value)


class QueryOptions(BaseModel):
    table: str
    select: Optional[List[str]] = None
    filters: List[Filter] = Field(default_factory=list)
    order: List[OrderBy] = Field(default_factory=list)
    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)

    @field_validator("table")
    @classmethod
    def _check_table(cls, value: str) -> str:
        return validate_identifier(value)

    @field_validator("select")
    @classmethod
    def _check_select(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return [validate_identifier(col) for col in value]
