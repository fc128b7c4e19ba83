from django.db import models
from django.db.models import Q

# Fallback image for products without any uploaded picture
PLACEHOLDER_IMAGE = '/images/placeholder.jpg'


class Category(models.Model):
    id = models.CharField(max_length=64, primary_key=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, null=True)
    icon = models.CharField(max_length=32, blank=True, null=True)
    display_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'categories'
        ordering = ['display_order', 'name']
        verbose_name_plural = 'categories'
        indexes = [
            models.Index(fields=['is_active'], name='idx_category_active'),
            models.Index(fields=['display_order'], name='idx_category_order'),
        ]

    def __str__(self):
        return self.name


class Product(models.Model):
    id = models.CharField(max_length=100, primary_key=True)
    name = models.CharField(max_length=200)
    description = models.TextField()
    price = models.DecimalField(max_digits=12, decimal_places=2)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    tags = models.JSONField(default=list, blank=True)
    unit = models.CharField(max_length=20, default='kg')
    available = models.BooleanField(default=True)
    featured = models.BooleanField(default=False)
    rating = models.DecimalField(max_digits=3, decimal_places=2, blank=True, null=True)
    # Denormalized primary image; maintained by services.catalog.image_sync
    image = models.CharField(max_length=500, default=PLACEHOLDER_IMAGE, db_default=PLACEHOLDER_IMAGE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category', '-created_at'], name='idx_product_category_created'),
            models.Index(fields=['available'], name='idx_product_available'),
            models.Index(fields=['featured'], name='idx_product_featured'),
        ]

    def __str__(self):
        return self.name

    @property
    def has_real_image(self):
        return bool(self.image) and self.image != PLACEHOLDER_IMAGE

    @property
    def primary_image(self):
        return self.images.filter(is_primary=True).first()


class ProductImage(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='images')
    image_url = models.CharField(max_length=500)
    alt_text = models.CharField(max_length=200, blank=True, null=True)
    display_order = models.PositiveIntegerField(default=0)
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'product_images'
        ordering = ['display_order', 'created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['product', 'image_url'], name='uniq_product_image_url'),
            # Enforced on backends with partial indexes (PostgreSQL, SQLite)
            models.UniqueConstraint(
                fields=['product'],
                condition=Q(is_primary=True),
                name='uniq_product_primary_image',
            ),
        ]
        indexes = [
            models.Index(fields=['product', 'display_order'], name='idx_product_image_order'),
        ]

    def __str__(self):
        return f'Image for {self.product_id}'


class Inventory(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='inventory')
    location = models.CharField(max_length=50, default='main')
    quantity = models.PositiveIntegerField(default=0)
    reserved_quantity = models.PositiveIntegerField(default=0)
    reorder_level = models.PositiveIntegerField(default=10)
    max_stock_level = models.PositiveIntegerField(blank=True, null=True)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'inventory'
        verbose_name_plural = 'inventory'
        constraints = [
            models.UniqueConstraint(fields=['product', 'location'], name='uniq_inventory_product_location'),
        ]
        indexes = [
            models.Index(fields=['quantity'], name='idx_inventory_quantity'),
        ]

    def __str__(self):
        return f'{self.product_id} @ {self.location}: {self.quantity}'

    @property
    def available_quantity(self):
        return max(self.quantity - self.reserved_quantity, 0)

    @property
    def needs_reorder(self):
        return self.quantity <= self.reorder_level

