"""
Services module for business logic.

- domain/: order, billing, inventory, table, catalog, settings and analytics services
- events/: transactional outbox and the background publisher
"""
