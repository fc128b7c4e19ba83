"""
Starter catalog for empty databases (demo and fresh installs).
"""
from __future__ import annotations

import logging
from decimal import Decimal

from django.db import DEFAULT_DB_ALIAS, transaction

from storefront.models import Category, Inventory, Product

from .product_service import create_product
from .validation import require_actor

logger = logging.getLogger(__name__)

SAMPLE_STOCK = 100

SAMPLE_CATEGORIES = [
    {"id": "rice", "name": "Rice", "description": "Premium quality rice varieties", "icon": "🍚", "display_order": 1},
    {"id": "flour", "name": "Flour", "description": "Various types of flour", "icon": "🌾", "display_order": 2},
    {"id": "grains", "name": "Grains", "description": "Nutritious grains and cereals", "icon": "🌾", "display_order": 3},
    {"id": "soya", "name": "Soya Products", "description": "Soya beans and products", "icon": "🫘", "display_order": 4},
    {"id": "spices", "name": "Spices", "description": "Fresh and aromatic spices", "icon": "🌶️", "display_order": 5},
]

SAMPLE_PRODUCTS = [
    {
        "id": "1",
        "name": "Premium Basmati Rice",
        "description": "Long grain aromatic basmati rice, perfect for special occasions",
        "price": Decimal("12000"),
        "image": "/images/1.jpg",
        "category_id": "rice",
        "tags": ["premium", "aromatic", "long-grain"],
        "featured": True,
    },
    {
        "id": "2",
        "name": "Local Rice",
        "description": "High quality local rice, perfect for daily meals",
        "price": Decimal("8000"),
        "image": "/images/2.jpg",
        "category_id": "rice",
        "tags": ["local", "daily-use"],
        "featured": False,
    },
    {
        "id": "3",
        "name": "Wheat Flour",
        "description": "Fine wheat flour for baking and cooking",
        "price": Decimal("6000"),
        "image": "/images/3.jpg",
        "category_id": "flour",
        "tags": ["wheat", "baking"],
        "featured": False,
    },
    {
        "id": "4",
        "name": "Maize Flour",
        "description": "Fresh maize flour for traditional dishes",
        "price": Decimal("5000"),
        "image": "/images/4.jpg",
        "category_id": "flour",
        "tags": ["maize", "traditional"],
        "featured": False,
    },
    {
        "id": "5",
        "name": "Soya Beans",
        "description": "Protein-rich soya beans",
        "price": Decimal("7000"),
        "image": "/images/5.jpg",
        "category_id": "soya",
        "tags": ["protein", "healthy"],
        "featured": True,
    },
]


def seed_sample_catalog(actor_id="system", *, using: str = DEFAULT_DB_ALIAS) -> dict:
    """
    Fill an empty catalog with the sample categories and products.

    Products go through `create_product`, so each gets its gallery and stock
    row like any admin-created product. A catalog that already has products
    is left alone.
    """
    require_actor(actor_id)
    if Product.objects.using(using).exists():
        logger.info("Catalog already has products, skipping sample data")
        return {"success": True, "created": 0, "message": "Database already initialized"}

    with transaction.atomic(using=using):
        for row in SAMPLE_CATEGORIES:
            defaults = {key: value for key, value in row.items() if key != "id"}
            Category.objects.using(using).get_or_create(id=row["id"], defaults=defaults)

        for row in SAMPLE_PRODUCTS:
            fields = dict(row, unit="kg", available=True)
            create_product(actor_id, fields, [row["image"]], using=using)

        Inventory.objects.using(using).filter(
            product_id__in=[row["id"] for row in SAMPLE_PRODUCTS]
        ).update(quantity=SAMPLE_STOCK)

    logger.info(f"Seeded {len(SAMPLE_PRODUCTS)} sample products")
    return {
        "success": True,
        "created": len(SAMPLE_PRODUCTS),
        "message": "Sample data initialized successfully",
    }
