"""Modrinth API client, unfeature rules and uploader."""
