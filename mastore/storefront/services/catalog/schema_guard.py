"""
Schema guard for the denormalized `products.image` column.

Deployed databases have not always carried the column. The guard adds it
(with the placeholder as database default) when it is missing and keeps a
per-connection capability flag that the write paths consult instead of
probing the schema on every call.

`ensure_image_column` uses the schema editor, so on SQLite it must run
outside of `transaction.atomic` blocks.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional, TypeVar

from django.db import DEFAULT_DB_ALIAS, DatabaseError, connections, transaction
from django.db.models import Q

from storefront.models import PLACEHOLDER_IMAGE, Category, Inventory, Product, ProductImage

from .errors import CatalogError, InternalError, SchemaMismatch

logger = logging.getLogger(__name__)

T = TypeVar("T")

IMAGE_COLUMN = "image"

# alias -> does products.image exist
_image_column_cache: Dict[str, bool] = {}

_MISSING_COLUMN_PATTERNS = (
    re.compile(r'no such column: (?:"?\w+"?\.)?"?(\w+)"?'),  # SQLite, reads
    re.compile(r'has no column named "?(\w+)"?'),  # SQLite, inserts
    re.compile(r'column "?(?:\w+\.)?(\w+)"? (?:of relation "\w+" )?does not exist'),  # PostgreSQL
    re.compile(r"unknown column '(?:\w+\.)?(\w+)'"),  # MySQL
)


@dataclass
class SchemaGuardResult:
    """
    Outcome of `ensure_image_column`.

    Attributes:
        added: The column was missing and has been created.
        default_asserted: The placeholder default was (re)applied.
    """

    added: bool
    default_asserted: bool


def _table_columns(connection, table: str) -> set:
    with connection.cursor() as cursor:
        return {column.name for column in connection.introspection.get_table_description(cursor, table)}


def image_column_available(using: str = DEFAULT_DB_ALIAS, refresh: bool = False) -> bool:
    if refresh or using not in _image_column_cache:
        connection = connections[using]
        column = Product._meta.get_field(IMAGE_COLUMN).column
        _image_column_cache[using] = column in _table_columns(connection, Product._meta.db_table)
    return _image_column_cache[using]


def mark_image_column_missing(using: str = DEFAULT_DB_ALIAS) -> None:
    _image_column_cache[using] = False


def reset_schema_cache(using: Optional[str] = None) -> None:
    if using is None:
        _image_column_cache.clear()
    else:
        _image_column_cache.pop(using, None)


def ensure_image_column(using: str = DEFAULT_DB_ALIAS) -> SchemaGuardResult:
    """
    Make sure `products.image` exists with the placeholder as its default.

    Safe to call on every deployment. Privilege errors from the database are
    not caught.
    """
    connection = connections[using]
    field = Product._meta.get_field(IMAGE_COLUMN)
    table = Product._meta.db_table

    if field.column not in _table_columns(connection, table):
        with connection.schema_editor() as editor:
            editor.add_field(Product, field)
        _image_column_cache[using] = True
        logger.info("Added %s.%s with default %r", table, field.column, PLACEHOLDER_IMAGE)
        return SchemaGuardResult(added=True, default_asserted=True)

    default_asserted = False
    # SQLite can only change a column default by rebuilding the table
    if connection.vendor in ("postgresql", "mysql"):
        with connection.schema_editor() as editor:
            editor.execute(
                "ALTER TABLE %s ALTER COLUMN %s SET DEFAULT %s"
                % (
                    editor.quote_name(table),
                    editor.quote_name(field.column),
                    editor.quote_value(PLACEHOLDER_IMAGE),
                ),
                None,
            )
        default_asserted = True
        logger.debug("Re-asserted default of %s.%s", table, field.column)

    _image_column_cache[using] = True
    return SchemaGuardResult(added=False, default_asserted=default_asserted)


def backfill_missing_images(using: str = DEFAULT_DB_ALIAS) -> int:
    """Point every product with a null/empty image at the placeholder."""
    if not image_column_available(using):
        raise SchemaMismatch(
            "products.image is missing; run ensure_image_column first",
            table=Product._meta.db_table,
            column=IMAGE_COLUMN,
        )
    with transaction.atomic(using=using):
        updated = (
            Product.objects.using(using)
            .filter(Q(image__isnull=True) | Q(image=""))
            .update(image=PLACEHOLDER_IMAGE)
        )
    if updated:
        logger.info("Backfilled placeholder image for %s products", updated)
    return updated


def check_schema(using: str = DEFAULT_DB_ALIAS) -> dict:
    """
    Report whether the catalog tables and the image column are in place.
    """
    connection = connections[using]
    expected_tables = [model._meta.db_table for model in (Category, Product, ProductImage, Inventory)]
    try:
        with connection.cursor() as cursor:
            existing = set(connection.introspection.table_names(cursor))
        missing_tables = [table for table in expected_tables if table not in existing]
        image_column = (
            Product._meta.db_table not in missing_tables
            and image_column_available(using, refresh=True)
        )
    except DatabaseError as exc:
        logger.error("Schema check failed: %s", exc, exc_info=True)
        return {"ok": False, "image_column": False, "missing_tables": [], "error": str(exc)}

    return {
        "ok": not missing_tables and image_column,
        "image_column": image_column,
        "missing_tables": missing_tables,
        "error": None,
    }


def missing_column_in_error(exc: BaseException) -> Optional[str]:
    """Name of the column a database error complains about, if any."""
    text = str(exc).lower()
    for pattern in _MISSING_COLUMN_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def translate_database_error(exc: DatabaseError, action: str) -> CatalogError:
    column = missing_column_in_error(exc)
    if column:
        return SchemaMismatch(
            f"{action} failed: storage schema is missing column {column!r}",
            column=column,
        )
    return InternalError(f"{action} failed: {exc}")


def run_guarded(action: str, unit_of_work: Callable[[], T], using: str = DEFAULT_DB_ALIAS) -> T:
    """
    Run `unit_of_work` in one atomic block and map database failures.

    When the probe claimed `products.image` exists but the database says
    otherwise, the probe is corrected and the unit of work re-runs once, so
    the write paths can take their no-image branch. Catalog errors raised by
    the unit of work pass through untouched.
    """
    retried = False
    while True:
        try:
            with transaction.atomic(using=using):
                return unit_of_work()
        except DatabaseError as exc:
            column = missing_column_in_error(exc)
            if column == IMAGE_COLUMN and not retried and image_column_available(using):
                logger.warning("%s: products.image vanished, retrying without it", action)
                mark_image_column_missing(using)
                retried = True
                continue
            raise translate_database_error(exc, action) from exc
