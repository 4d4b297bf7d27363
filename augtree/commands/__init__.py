"""Command modules for the augtree CLI."""
