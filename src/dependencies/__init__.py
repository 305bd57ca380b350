"""Platform-agnostic dependencies.

- models.py: the Dependency value, its kinds and its string notation
- reconcile.py: conversion into platform-specific (id, kind) pairs
"""

from .models import (  # noqa: F401
    ANY_VERSION,
    FABRIC_DEPENDENCY_TYPES,
    Dependency,
    DependencyType,
    create_dependency,
    format_dependency,
    parse_dependencies,
    parse_dependency,
)
from .reconcile import dedupe_by, simplify  # noqa: F401
