"""Mapping models for legacy-to-target table translation."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
import json


class TransformType(str, Enum):
    """Supported transformation types."""
    DIRECT = "direct"
    INTEGER = "integer"
    EPOCH_SECONDS = "epoch_seconds"
    DATETIME = "datetime"
    ENUM_MAP = "enum_map"
    DEFAULT = "default"
    CONSTANT = "constant"
    CUSTOM = "custom"


@dataclass
class FieldMapping:
    """Mapping from a positional legacy cell to a target field."""
    position: Optional[int]  # None for constant/generated fields
    target_field: str
    transform: TransformType = TransformType.DIRECT
    transform_config: Dict[str, Any] = field(default_factory=dict)
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            "position": self.position,
            "target_field": self.target_field,
            "transform": self.transform.value if isinstance(self.transform, TransformType) else self.transform,
        }
        if self.transform_config:
            result["transform_config"] = self.transform_config
        if self.notes:
            result["notes"] = self.notes
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldMapping":
        """Create from dictionary representation."""
        transform = data.get("transform", "direct")
        transform_config = dict(data.get("transform_config", {}))
        if isinstance(transform, str):
            try:
                transform = TransformType(transform)
            except ValueError:
                # Named custom transform
                transform_config.setdefault("function", transform)
                transform = TransformType.CUSTOM

        return cls(
            position=data.get("position"),
            target_field=data.get("target_field", ""),
            transform=transform,
            transform_config=transform_config,
            notes=data.get("notes", ""),
        )


@dataclass
class TableMapping:
    """Mapping between a legacy table and a target table."""
    source_table: str
    target_table: str
    label: str = ""  # e.g. "admin account", used in log messages
    description: str = ""
    field_mappings: List[FieldMapping] = field(default_factory=list)
    conflict_columns: List[str] = field(default_factory=list)

    @property
    def expected_width(self) -> int:
        """Number of positional cells a raw row must carry."""
        positions = [fm.position for fm in self.field_mappings if fm.position is not None]
        return max(positions) + 1 if positions else 0

    @property
    def display_label(self) -> str:
        return self.label or self.source_table

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source_table": self.source_table,
            "target_table": self.target_table,
            "label": self.label,
            "description": self.description,
            "field_mappings": [m.to_dict() for m in self.field_mappings],
            "conflict_columns": self.conflict_columns,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableMapping":
        """Create from dictionary representation."""
        return cls(
            source_table=data.get("source_table", ""),
            target_table=data.get("target_table", ""),
            label=data.get("label", ""),
            description=data.get("description", ""),
            field_mappings=[FieldMapping.from_dict(fm) for fm in data.get("field_mappings", [])],
            conflict_columns=data.get("conflict_columns", []),
        )


@dataclass
class MigrationMapping:
    """Versioned set of table mappings, applied in order."""
    name: str
    version: str = "1.0"
    description: str = ""
    table_mappings: List[TableMapping] = field(default_factory=list)

    def get(self, source_table: str) -> Optional[TableMapping]:
        for mapping in self.table_mappings:
            if mapping.source_table == source_table:
                return mapping
        return None

    @property
    def source_tables(self) -> List[str]:
        return [m.source_table for m in self.table_mappings]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "mappings": [m.to_dict() for m in self.table_mappings],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationMapping":
        """Create from dictionary representation."""
        return cls(
            name=data.get("name", ""),
            version=data.get("version", "1.0"),
            description=data.get("description", ""),
            table_mappings=[TableMapping.from_dict(m) for m in data.get("mappings", [])],
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> "MigrationMapping":
        """Load mapping from JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def save_to_json(self, file_path: str) -> None:
        """Save mapping to JSON file."""
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
