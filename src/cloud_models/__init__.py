"""
cloud-models: package root

File: src/cloud_models/__init__.py

Purpose
- Schema-validated object mapping over a hosted backend-as-a-service datastore.
- Entities validate JSON payloads field by field before they can be persisted as
  backend records.

Import boundary rules
- Must not have side effects at import time (no config loading, no logging init).
- Public entry points live in ``cloud_models.model``; this module only exports metadata.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
