"""Utility helpers for augtree."""
