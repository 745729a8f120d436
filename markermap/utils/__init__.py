"""Utility helpers shared across the parser, models and routes."""
