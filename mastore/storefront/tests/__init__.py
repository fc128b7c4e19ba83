"""
Tests for the storefront catalog services.

Test structure:
- test_product_service.py: Product create/update/delete units of work
- test_image_sync.py: Primary image propagation and gallery mutations
- test_consistency.py: Product image audit and repair
- test_schema_guard.py: products.image guard, error mapping, degraded writes
- test_inventory.py: Stock rows and low-stock listing
- test_events.py: Lifecycle events after commit
- test_validation.py: Field parsing helpers
- test_settings_logging.py: Optional file logging in settings
- test_commands.py: Management commands, sample data and Celery task
"""
