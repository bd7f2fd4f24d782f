"""
Document-level helpers: normalization, legacy migration, schema validation and file IO.
"""

from .normalize import normalize_project, normalize_task
from .migration import Migration, LegacyDocumentMigration, upgrade_document
from .validate import validate_document, project_schema

__all__ = [
    'normalize_project',
    'normalize_task',
    'Migration',
    'LegacyDocumentMigration',
    'upgrade_document',
    'validate_document',
    'project_schema',
]
