"""Transformation engine for mapping legacy rows to target records."""

import logging
from typing import Any, Callable, Dict, Optional
from datetime import datetime, timezone
from dateutil import parser as date_parser

from ..exceptions import MappingInvalidError
from ..models.schema import (
    TransformType,
    TableMapping,
    FieldMapping,
)
from ..models.record import MappedRecord, RawRow

logger = logging.getLogger(__name__)

# MySQL "zero" dates stand for an absent value
_ZERO_DATES = ("0000-00-00", "0000-00-00 00:00:00")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class TransformEngine:
    """
    Engine for transforming raw legacy rows to target records.

    Supports:
    - Built-in transformation functions
    - Custom transformation functions registered by name
    - A per-run "now" used for missing timestamps
    """

    def __init__(self, now: Optional[datetime] = None):
        """
        Initialize the transform engine.

        Args:
            now: Timestamp substituted for absent dates with ``default: "now"``
        """
        self.now = now or datetime.now(timezone.utc)
        self._custom_transforms: Dict[str, Callable] = {}
        self._builtin_transforms = self._register_builtin_transforms()

    def _register_builtin_transforms(self) -> Dict[str, Callable]:
        """Register all built-in transformation functions."""
        return {
            TransformType.DIRECT.value: self._transform_direct,
            TransformType.INTEGER.value: self._transform_integer,
            TransformType.EPOCH_SECONDS.value: self._transform_epoch_seconds,
            TransformType.DATETIME.value: self._transform_datetime,
            TransformType.ENUM_MAP.value: self._transform_enum_map,
            TransformType.DEFAULT.value: self._transform_default,
            TransformType.CONSTANT.value: self._transform_constant,
        }

    def register_transform(self, name: str, func: Callable) -> None:
        """Register a custom transformation function."""
        self._custom_transforms[name] = func

    def transform_row(
        self,
        row: RawRow,
        mapping: TableMapping,
        index: int,
    ) -> MappedRecord:
        """
        Transform one raw legacy row to the target shape.

        Args:
            row: Positional cells as parsed from the dump
            mapping: Table mapping to apply
            index: Position of the row in its table (0-based)

        Returns:
            MappedRecord for the target table

        Raises:
            MappingInvalidError: row is too short or a cell cannot be converted
        """
        if len(row) < mapping.expected_width:
            raise MappingInvalidError(
                f"{mapping.source_table} row {index + 1} has {len(row)} field(s), "
                f"expected {mapping.expected_width}",
                row_index=index,
            )

        data: Dict[str, Any] = {}
        for field_mapping in mapping.field_mappings:
            value = row[field_mapping.position] if field_mapping.position is not None else None
            transform_func = self._resolve(field_mapping)

            try:
                data[field_mapping.target_field] = transform_func(value, field_mapping.transform_config)
            except (ValueError, TypeError, OverflowError, OSError) as e:
                raise MappingInvalidError(
                    f"{mapping.source_table} row {index + 1}: cannot map {value!r} "
                    f"to {field_mapping.target_field}: {e}",
                    row_index=index,
                ) from e

        missing = [c for c in mapping.conflict_columns if data.get(c) is None]
        if missing:
            raise MappingInvalidError(
                f"{mapping.source_table} row {index + 1} has no value for key {', '.join(missing)}",
                row_index=index,
            )

        return MappedRecord(
            target_table=mapping.target_table,
            data=data,
            source_table=mapping.source_table,
            source_index=index,
            conflict_columns=list(mapping.conflict_columns),
        )

    def _resolve(self, field_mapping: FieldMapping) -> Callable:
        transform_name = (
            field_mapping.transform.value
            if isinstance(field_mapping.transform, TransformType)
            else field_mapping.transform
        )

        transform_func = (
            self._custom_transforms.get(transform_name) or
            self._builtin_transforms.get(transform_name)
        )

        if not transform_func and transform_name == TransformType.CUSTOM.value:
            func_name = field_mapping.transform_config.get("function")
            transform_func = self._custom_transforms.get(func_name)

        if not transform_func:
            logger.warning(f"Unknown transform: {transform_name}, using direct copy")
            transform_func = self._transform_direct

        return transform_func

    # Built-in transforms

    def _transform_direct(self, value: Any, config: Dict) -> Any:
        """Return value as-is."""
        return value

    def _transform_integer(self, value: Any, config: Dict) -> Optional[int]:
        """Convert a literal integer token."""
        if _is_blank(value):
            return None
        if isinstance(value, int):
            return value
        return int(str(value).strip())

    def _transform_epoch_seconds(self, value: Any, config: Dict) -> Optional[datetime]:
        """Convert epoch seconds to an aware UTC datetime."""
        if _is_blank(value):
            return None
        return datetime.fromtimestamp(float(str(value).strip()), tz=timezone.utc)

    def _transform_datetime(self, value: Any, config: Dict) -> Optional[datetime]:
        """Parse a free-form date; naive values are taken as UTC."""
        if _is_blank(value) or str(value).strip() in _ZERO_DATES:
            return self.now if config.get("default") == "now" else None

        if isinstance(value, datetime):
            parsed = value
        else:
            parsed = date_parser.parse(str(value).strip())

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _transform_enum_map(self, value: Any, config: Dict) -> Any:
        """Map value using a lookup table, falling back to the configured default."""
        if _is_blank(value):
            return config.get("default")

        mapping = {str(k).lower(): v for k, v in config.get("mapping", {}).items()}
        return mapping.get(str(value).strip().lower(), config.get("default"))

    def _transform_default(self, value: Any, config: Dict) -> Any:
        """Return the configured value if the source is absent or empty."""
        if _is_blank(value):
            return config.get("value")
        return value

    def _transform_constant(self, value: Any, config: Dict) -> Any:
        """Ignore the source and return the configured value."""
        return config.get("value")
