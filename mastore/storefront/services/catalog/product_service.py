"""
Product create/update/delete as single all-or-nothing units of work.

A create writes the product row, its gallery and its default stock record
together; any failure leaves nothing behind. Image rows go through
`image_sync` so `Product.image` always mirrors the primary image.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from django.db import DEFAULT_DB_ALIAS, IntegrityError, connections, transaction
from django.utils import timezone

from storefront.models import PLACEHOLDER_IMAGE, Category, Product, ProductImage

from . import events, image_sync
from .errors import DuplicateKey, InvalidReference, NotFound, ValidationError
from .inventory_service import ensure_inventory
from .schema_guard import IMAGE_COLUMN, image_column_available, run_guarded
from .validation import clean_text, parse_bool, parse_price, parse_tags, require_actor

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("name", "description", "unit")
FLAG_FIELDS = ("available", "featured")


def _max_length(model, name: str) -> Optional[int]:
    return model._meta.get_field(name).max_length


@dataclass
class ProductResult:
    """
    Outcome of a product write, shaped for the admin UI.

    Attributes:
        id: Product primary key.
        name: Product name after the write.
        image: Main image URL (placeholder when the product has none).
        timestamp: `created_at` for creates, `updated_at` for updates.
    """

    id: str
    name: str
    image: str
    timestamp: datetime
    success: bool = True
    message: str = ""

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "success": self.success,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class _Gallery:
    main_image: str
    urls: List[str] = field(default_factory=list)


def generate_product_id() -> str:
    return f"product-{int(time.time())}-{random.randint(0, 999)}"


def _gallery_for(explicit_image: Any, image_urls: Iterable[Any]) -> _Gallery:
    """
    Work out the gallery rows and main image for a new product.

    Blank URLs are dropped and duplicates collapsed. An explicit main image
    that is not already in the list is placed first so that it is also the
    primary `ProductImage`.
    """
    urls: List[str] = []
    for raw in image_urls or ():
        url = clean_text(raw, _max_length(ProductImage, "image_url"), "image_urls")
        if url and url not in urls:
            urls.append(url)

    explicit = clean_text(explicit_image, _max_length(Product, "image"), "image")
    if explicit == PLACEHOLDER_IMAGE:
        explicit = ""
    if explicit:
        if explicit in urls:
            urls.remove(explicit)
        urls.insert(0, explicit)

    return _Gallery(main_image=urls[0] if urls else PLACEHOLDER_IMAGE, urls=urls)


def _category_exists(category_id: str, using: str) -> bool:
    return Category.objects.using(using).filter(pk=category_id).exists()


def _insert_product(product: Product, using: str) -> None:
    """
    INSERT the product row, mapping a primary-key collision to DuplicateKey.

    Without `products.image` the row is written with every other column and
    the gallery alone carries the main image.
    """
    try:
        with transaction.atomic(using=using):
            if image_column_available(using):
                product.save(using=using, force_insert=True)
            else:
                _insert_without_image(product, using)
    except IntegrityError as exc:
        if Product.objects.using(using).filter(pk=product.pk).exists():
            raise DuplicateKey(f"Product {product.pk} already exists", product_id=product.pk) from exc
        raise


def _insert_without_image(product: Product, using: str) -> None:
    connection = connections[using]
    qn = connection.ops.quote_name
    fields = [f for f in Product._meta.concrete_fields if f.name != IMAGE_COLUMN]
    values = [f.get_db_prep_save(f.pre_save(product, True), connection) for f in fields]
    sql = "INSERT INTO %s (%s) VALUES (%s)" % (
        qn(Product._meta.db_table),
        ", ".join(qn(f.column) for f in fields),
        ", ".join(["%s"] * len(fields)),
    )
    with connection.cursor() as cursor:
        cursor.execute(sql, values)
    product._state.adding = False
    product._state.db = using
    logger.warning(f"Inserted product {product.pk} without products.image")


def _locked_product(product_id: str, using: str) -> Product:
    qs = Product.objects.using(using).select_for_update()
    if not image_column_available(using):
        qs = qs.defer(IMAGE_COLUMN)
    product = qs.filter(pk=product_id).first()
    if product is None:
        raise NotFound("Product not found", product_id=product_id)
    return product


def _main_image(product: Product, using: str) -> str:
    if image_column_available(using):
        return product.image
    return image_sync.expected_primary_image(product.pk, using)


def create_product(
    actor_id,
    product_fields: Mapping[str, Any],
    image_urls: Iterable[Any] = (),
    *,
    using: str = DEFAULT_DB_ALIAS,
) -> ProductResult:
    """
    Validate and create a product with its images and default stock row.

    Raises `Unauthorized`, `ValidationError`, `InvalidReference`,
    `DuplicateKey`, `SchemaMismatch` or `InternalError`; nothing is written
    in any of those cases.
    """
    require_actor(actor_id)

    name = clean_text(product_fields.get("name"), _max_length(Product, "name"), "name")
    description = clean_text(product_fields.get("description"))
    if not name:
        raise ValidationError("Product name is required", field="name")
    if not description:
        raise ValidationError("Product description is required", field="description")
    price = parse_price(product_fields.get("price"))
    if price is None:
        raise ValidationError("Valid product price is required", field="price")
    category_id = clean_text(product_fields.get("category_id"), _max_length(Category, "id"), "category_id")
    if not category_id:
        raise ValidationError("Product category is required", field="category_id")

    tags = parse_tags(product_fields.get("tags"))
    unit = clean_text(product_fields.get("unit"), _max_length(Product, "unit"), "unit") or "kg"
    available = parse_bool(product_fields.get("available"), "available")
    featured = parse_bool(product_fields.get("featured"), "featured")
    product_id = clean_text(product_fields.get("id"), _max_length(Product, "id"), "id") or generate_product_id()
    gallery = _gallery_for(product_fields.get("image"), image_urls)

    def _create() -> Product:
        if not _category_exists(category_id, using):
            raise InvalidReference("Invalid category selected", category_id=category_id)

        product = Product(
            id=product_id,
            name=name,
            description=description,
            price=price,
            category_id=category_id,
            tags=tags,
            unit=unit,
            available=True if available is None else available,
            featured=False if featured is None else featured,
            image=gallery.main_image,
        )
        _insert_product(product, using)

        for position, url in enumerate(gallery.urls):
            image = ProductImage(
                product_id=product.pk,
                image_url=url,
                display_order=position,
                is_primary=position == 0,
            )
            image.save(using=using, force_insert=True)
            image_sync.on_image_saved(image, using=using)

        ensure_inventory(product, using=using)
        events.emit(
            events.product_created, sender=Product, using=using,
            product_id=product.pk, name=product.name, actor_id=actor_id,
        )
        return product

    product = run_guarded("Create product", _create, using)
    logger.info(f"Product {product.pk} created by {actor_id} with {len(gallery.urls)} images")
    return ProductResult(
        id=product.pk,
        name=product.name,
        image=gallery.main_image,
        timestamp=product.created_at,
        message="Product created successfully",
    )


def update_product(
    actor_id,
    product_id: str,
    partial_fields: Mapping[str, Any],
    *,
    using: str = DEFAULT_DB_ALIAS,
) -> ProductResult:
    """
    Merge `partial_fields` into an existing product.

    Missing or blank values leave the stored value alone; flags change only
    when supplied. A non-blank `image` becomes the product's primary image.
    """
    require_actor(actor_id)
    product_id = clean_text(product_id)

    changes = {}
    for name in TEXT_FIELDS:
        value = clean_text(partial_fields.get(name), _max_length(Product, name), name)
        if value:
            changes[name] = value
    price = parse_price(partial_fields.get("price"))
    if price is not None:
        changes["price"] = price
    tags = parse_tags(partial_fields.get("tags"))
    if tags:
        changes["tags"] = tags
    for name in FLAG_FIELDS:
        flag = parse_bool(partial_fields.get(name), name)
        if flag is not None:
            changes[name] = flag
    category_id = clean_text(partial_fields.get("category_id"), _max_length(Category, "id"), "category_id")
    new_image = clean_text(partial_fields.get("image"), _max_length(Product, "image"), "image")
    if new_image == PLACEHOLDER_IMAGE:
        # the fallback is never stored as a gallery row
        new_image = ""

    def _update() -> Product:
        product = _locked_product(product_id, using)
        if category_id:
            if not _category_exists(category_id, using):
                raise InvalidReference("Invalid category selected", category_id=category_id)
            changes["category_id"] = category_id

        for name, value in changes.items():
            setattr(product, name, value)
        product.updated_at = timezone.now()
        product.save(using=using, update_fields=[*changes, "updated_at"])

        if new_image:
            image_sync.demote_other_images(product.pk, using=using)
            image, _ = ProductImage.objects.using(using).update_or_create(
                product_id=product.pk,
                image_url=new_image,
                defaults={"is_primary": True, "display_order": 0},
            )
            image_sync.on_image_saved(image, using=using)
            if image_column_available(using):
                product.image = new_image

        events.emit(
            events.product_updated, sender=Product, using=using,
            product_id=product.pk, actor_id=actor_id,
            fields=sorted([*changes, *(["image"] if new_image else [])]),
        )
        return product

    product = run_guarded("Update product", _update, using)
    logger.info(f"Product {product.pk} updated by {actor_id}: {sorted(changes)}")
    return ProductResult(
        id=product.pk,
        name=product.name,
        image=_main_image(product, using),
        timestamp=product.updated_at,
        message="Product updated successfully",
    )


def delete_product(actor_id, product_id: str, *, using: str = DEFAULT_DB_ALIAS) -> None:
    """
    Delete a product together with its images and stock rows.

    Stored image files are not touched.
    """
    require_actor(actor_id)
    product_id = clean_text(product_id)

    def _delete() -> None:
        product = _locked_product(product_id, using)
        product.delete(using=using)
        events.emit(
            events.product_deleted, sender=Product, using=using,
            product_id=product_id, actor_id=actor_id,
        )

    run_guarded("Delete product", _delete, using)
    logger.info(f"Product {product_id} deleted by {actor_id}")


def get_product(product_id: str, *, using: str = DEFAULT_DB_ALIAS) -> Optional[Product]:
    qs = Product.objects.using(using).prefetch_related("images")
    if not image_column_available(using):
        qs = qs.defer(IMAGE_COLUMN)
    return qs.filter(pk=product_id).first()
