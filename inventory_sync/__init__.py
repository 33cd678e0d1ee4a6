"""Warehouse inventory sync service."""
