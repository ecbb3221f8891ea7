"""Geo-privacy core services."""
