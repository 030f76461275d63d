# ============================================================================
# PYDANTIC TO SQL GENERATOR
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core - DDL generation from Pydantic models
# PURPOSE: Generate PostgreSQL CREATE statements for the queue tables
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: PydanticToSQL
# DEPENDENCIES: pydantic, psycopg
# ============================================================================
"""
Pydantic to PostgreSQL Schema Generator.

Pydantic models are the single source of truth for the queue tables.

Model Metadata Convention:
    - __sql_table__: Table name
    - __sql_schema__: Schema name
    - __sql_primary_key__: Primary key column(s)
    - __sql_indexes__: List of (name, [columns]) tuples

Status enums map to VARCHAR with a CHECK constraint rather than a PostgreSQL
ENUM type, so adding a status never requires ALTER TYPE.

Usage:
    generator = PydanticToSQL()
    for stmt in generator.generate_all([EmailJob, CertificateJob]):
        await conn.execute(stmt)
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Type, Union, get_args, get_origin

from psycopg import sql
from pydantic import BaseModel
from pydantic.fields import FieldInfo

logger = logging.getLogger(__name__)


class PydanticToSQL:
    """Convert Pydantic models with __sql_* metadata to PostgreSQL DDL."""

    TYPE_MAP = {
        str: "VARCHAR",
        int: "INTEGER",
        float: "DOUBLE PRECISION",
        bool: "BOOLEAN",
        datetime: "TIMESTAMPTZ",
        dict: "JSONB",
        list: "JSONB",
    }

    def __init__(self, schema_name: Optional[str] = None):
        """
        Args:
            schema_name: Overrides each model's __sql_schema__ when set
        """
        self.schema_name = schema_name

    # =========================================================================
    # METADATA EXTRACTION
    # =========================================================================

    def get_model_metadata(self, model: Type[BaseModel]) -> Dict[str, Any]:
        primary_key = getattr(model, "__sql_primary_key__", [])
        if isinstance(primary_key, str):
            primary_key = [primary_key]
        return {
            "table": getattr(model, "__sql_table__", None),
            "schema": self.schema_name or getattr(model, "__sql_schema__", "public"),
            "primary_key": list(primary_key),
            "indexes": list(getattr(model, "__sql_indexes__", [])),
        }

    # =========================================================================
    # TYPE CONVERSION
    # =========================================================================

    @staticmethod
    def _unwrap_optional(field_type: Any):
        """Return (inner_type, is_optional)."""
        if get_origin(field_type) is Union:
            args = [a for a in get_args(field_type) if a is not type(None)]
            if len(args) == 1 and len(args) != len(get_args(field_type)):
                return args[0], True
        return field_type, False

    def python_type_to_sql(self, field_type: Any, field_info: FieldInfo) -> str:
        actual_type, _ = self._unwrap_optional(field_type)
        origin = get_origin(actual_type)
        if origin in (dict, list):
            return "JSONB"

        if isinstance(actual_type, type) and issubclass(actual_type, Enum):
            longest = max(len(str(member.value)) for member in actual_type)
            return f"VARCHAR({max(longest, 20)})"

        if actual_type is str:
            for constraint in field_info.metadata:
                max_length = getattr(constraint, "max_length", None)
                if max_length is not None:
                    return f"VARCHAR({max_length})"
            return "TEXT"

        return self.TYPE_MAP.get(actual_type, "JSONB")

    # =========================================================================
    # TABLE GENERATION
    # =========================================================================

    def generate_table(self, model: Type[BaseModel]) -> sql.Composed:
        meta = self.get_model_metadata(model)
        table_name = meta["table"]
        schema_name = meta["schema"]
        primary_key = meta["primary_key"]

        if not table_name:
            raise ValueError(f"Model {model.__name__} missing __sql_table__ attribute")

        logger.debug(f"Generating table {schema_name}.{table_name} from {model.__name__}")

        columns = []
        constraints = []

        for field_name, field_info in model.model_fields.items():
            inner_type, is_optional = self._unwrap_optional(field_info.annotation)
            sql_type = self.python_type_to_sql(field_info.annotation, field_info)

            parts = [sql.Identifier(field_name), sql.SQL(" " + sql_type)]

            if not is_optional and field_name not in primary_key:
                parts.append(sql.SQL(" NOT NULL"))

            default = field_info.default
            if isinstance(default, Enum):
                parts.extend([sql.SQL(" DEFAULT "), sql.Literal(default.value)])
            elif isinstance(default, bool):
                parts.append(sql.SQL(" DEFAULT true" if default else " DEFAULT false"))
            elif isinstance(default, (str, int, float)):
                parts.extend([sql.SQL(" DEFAULT "), sql.Literal(default)])
            elif field_name in ("created_at", "updated_at"):
                parts.append(sql.SQL(" DEFAULT NOW()"))
            elif sql_type == "JSONB" and field_info.default_factory is not None:
                parts.append(sql.SQL(" DEFAULT '{}'::jsonb"))

            columns.append(sql.Composed(parts))

            if isinstance(inner_type, type) and issubclass(inner_type, Enum):
                allowed = sql.SQL(", ").join(sql.Literal(m.value) for m in inner_type)
                constraints.append(
                    sql.SQL("CHECK ({} IN ({}))").format(sql.Identifier(field_name), allowed)
                )

        if primary_key:
            constraints.append(
                sql.SQL("PRIMARY KEY ({})").format(
                    sql.SQL(", ").join(sql.Identifier(col) for col in primary_key)
                )
            )

        return sql.SQL("CREATE TABLE IF NOT EXISTS {}.{} ({})").format(
            sql.Identifier(schema_name),
            sql.Identifier(table_name),
            sql.SQL(", ").join(columns + constraints),
        )

    # =========================================================================
    # INDEX GENERATION
    # =========================================================================

    def generate_indexes(self, model: Type[BaseModel]) -> List[sql.Composed]:
        meta = self.get_model_metadata(model)
        result = []
        for idx_def in meta["indexes"]:
            name, columns = idx_def[0], idx_def[1]
            if isinstance(columns, str):
                columns = [columns]
            result.append(
                sql.SQL("CREATE INDEX IF NOT EXISTS {} ON {}.{} ({})").format(
                    sql.Identifier(name),
                    sql.Identifier(meta["schema"]),
                    sql.Identifier(meta["table"]),
                    sql.SQL(", ").join(sql.Identifier(c) for c in columns),
                )
            )
        return result

    # =========================================================================
    # FULL SCHEMA
    # =========================================================================

    def generate_all(self, models: Sequence[Type[BaseModel]]) -> List[sql.Composed]:
        """CREATE SCHEMA, then each table followed by its indexes."""
        statements: List[sql.Composed] = []
        schemas = []
        for model in models:
            schema = self.get_model_metadata(model)["schema"]
            if schema not in schemas:
                schemas.append(schema)
        for schema in schemas:
            statements.append(
                sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(schema))
            )
        for model in models:
            statements.append(self.generate_table(model))
            statements.extend(self.generate_indexes(model))
        return statements


__all__ = ["PydanticToSQL"]
