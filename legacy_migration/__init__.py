"""
Legacy Data Migration

Imports the legacy MySQL dump of the mechanization website into the new
relational schema.

Supports:
- Parsing MySQL dump files (CREATE TABLE / INSERT INTO statements)
- Declarative, versioned legacy-to-target field mappings
- Idempotent per-row loading with a per-run migration log
- Status checks and table previews over the destination store
"""

__version__ = "0.1.0"
