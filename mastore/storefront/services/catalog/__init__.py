"""
Catalog write services: products, their image galleries and stock rows.
"""

from .consistency import VerificationReport, verify_and_repair
from .errors import (
    CatalogError,
    DuplicateKey,
    InternalError,
    InvalidReference,
    NotFound,
    SchemaMismatch,
    Unauthorized,
    ValidationError,
)
from .image_sync import expected_primary_image, resolve_primary_image
from .inventory_service import ensure_inventory, get_inventory, low_stock, update_inventory
from .media_service import attach_image, remove_image, set_primary_image
from .product_service import (
    ProductResult,
    create_product,
    delete_product,
    generate_product_id,
    get_product,
    update_product,
)
from .sample_data import seed_sample_catalog
from .schema_guard import (
    SchemaGuardResult,
    backfill_missing_images,
    check_schema,
    ensure_image_column,
    image_column_available,
)

__all__ = [
    "VerificationReport",
    "verify_and_repair",
    "CatalogError",
    "DuplicateKey",
    "InternalError",
    "InvalidReference",
    "NotFound",
    "SchemaMismatch",
    "Unauthorized",
    "ValidationError",
    "expected_primary_image",
    "resolve_primary_image",
    "ensure_inventory",
    "get_inventory",
    "low_stock",
    "update_inventory",
    "attach_image",
    "remove_image",
    "set_primary_image",
    "ProductResult",
    "create_product",
    "delete_product",
    "generate_product_id",
    "get_product",
    "update_product",
    "seed_sample_catalog",
    "SchemaGuardResult",
    "backfill_missing_images",
    "check_schema",
    "ensure_image_column",
    "image_column_available",
]
