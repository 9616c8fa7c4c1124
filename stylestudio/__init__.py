"""Garment lifecycle and styling-composition pipeline."""
