"""Translation resolution, caching, marking and reconciliation services."""
