"""Loaders for templates, snippets, datasets and pages."""
