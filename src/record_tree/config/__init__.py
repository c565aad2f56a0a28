"""Configuration for record-tree."""
