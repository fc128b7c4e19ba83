import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, null=True)),
                ('icon', models.CharField(blank=True, max_length=32, null=True)),
                ('display_order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name_plural': 'categories',
                'db_table': 'categories',
                'ordering': ['display_order', 'name'],
                'indexes': [
                    models.Index(fields=['is_active'], name='idx_category_active'),
                    models.Index(fields=['display_order'], name='idx_category_order'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.CharField(max_length=100, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField()),
                ('price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('unit', models.CharField(default='kg', max_length=20)),
                ('available', models.BooleanField(default=True)),
                ('featured', models.BooleanField(default=False)),
                ('rating', models.DecimalField(blank=True, decimal_places=2, max_digits=3, null=True)),
                ('image', models.CharField(db_default='/images/placeholder.jpg', default='/images/placeholder.jpg', max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='products', to='storefront.category')),
            ],
            options={
                'db_table': 'products',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['category', '-created_at'], name='idx_product_category_created'),
                    models.Index(fields=['available'], name='idx_product_available'),
                    models.Index(fields=['featured'], name='idx_product_featured'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProductImage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('image_url', models.CharField(max_length=500)),
                ('alt_text', models.CharField(blank=True, max_length=200, null=True)),
                ('display_order', models.PositiveIntegerField(default=0)),
                ('is_primary', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='images', to='storefront.product')),
            ],
            options={
                'db_table': 'product_images',
                'ordering': ['display_order', 'created_at', 'id'],
                'indexes': [
                    models.Index(fields=['product', 'display_order'], name='idx_product_image_order'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('product', 'image_url'), name='uniq_product_image_url'),
                    models.UniqueConstraint(condition=models.Q(('is_primary', True)), fields=('product',), name='uniq_product_primary_image'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Inventory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('location', models.CharField(default='main', max_length=50)),
                ('quantity', models.PositiveIntegerField(default=0)),
                ('reserved_quantity', models.PositiveIntegerField(default=0)),
                ('reorder_level', models.PositiveIntegerField(default=10)),
                ('max_stock_level', models.PositiveIntegerField(blank=True, null=True)),
                ('last_updated', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory', to='storefront.product')),
            ],
            options={
                'verbose_name_plural': 'inventory',
                'db_table': 'inventory',
                'indexes': [
                    models.Index(fields=['quantity'], name='idx_inventory_quantity'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('product', 'location'), name='uniq_inventory_product_location'),
                ],
            },
        ),
    ]
