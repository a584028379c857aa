"""Built-in legacy table mappings for the mechanization site dump."""

from typing import Dict, Optional

from ..models.schema import (
    TransformType,
    FieldMapping,
    TableMapping,
    MigrationMapping,
)

MAPPING_VERSION = "1.0"

# Legacy free-text content categories -> news_events.event_type
CONTENT_TYPE_MAP: Dict[str, str] = {
    "news": "news",
    "event": "conference",
    "webinar": "workshop",
    "announcement": "announcement",
    "meeting": "meeting",
}
DEFAULT_CONTENT_TYPE = "news"

ADMIN_ACCOUNTS = TableMapping(
    source_table="afmz_admin_accounts",
    target_table="legacy_admin_accounts",
    label="admin account",
    description="Legacy administrator logins",
    field_mappings=[
        FieldMapping(0, "legacy_admin_id", TransformType.INTEGER),
        FieldMapping(1, "username"),
        FieldMapping(2, "email"),
        FieldMapping(3, "full_name"),
        FieldMapping(4, "password_hash"),
        FieldMapping(5, "admin_type"),
        FieldMapping(6, "last_login", TransformType.EPOCH_SECONDS, notes="epoch seconds"),
    ],
    conflict_columns=["username"],
)

CONFIG_CHOICES = TableMapping(
    source_table="afmz_conf_choices",
    target_table="legacy_config_choices",
    label="config choice",
    description="Site configuration pick-lists",
    field_mappings=[
        FieldMapping(0, "legacy_choice_id", TransformType.INTEGER),
        FieldMapping(1, "choice_level"),
        FieldMapping(2, "category"),
        FieldMapping(3, "choice_item"),
        FieldMapping(4, "choice_seo"),
        FieldMapping(5, "parent_choice"),
        FieldMapping(6, "description"),
        FieldMapping(7, "extras"),
    ],
    conflict_columns=["legacy_choice_id"],
)

CONTENT = TableMapping(
    source_table="afmz_content",
    target_table="news_events",
    label="content item",
    description="News, events and announcements",
    field_mappings=[
        FieldMapping(0, "legacy_id", TransformType.INTEGER),
        FieldMapping(1, "title", TransformType.DEFAULT, {"value": "Untitled"}),
        FieldMapping(2, "content", TransformType.DEFAULT, {"value": ""}),
        FieldMapping(3, "event_type", TransformType.ENUM_MAP, {
            "mapping": CONTENT_TYPE_MAP,
            "default": DEFAULT_CONTENT_TYPE,
        }),
        FieldMapping(3, "legacy_type"),
        FieldMapping(None, "status", TransformType.CONSTANT, {"value": "published"}),
        FieldMapping(4, "created_at", TransformType.DATETIME, {"default": "now"}),
    ],
    conflict_columns=["legacy_id"],
)


def default_mapping() -> MigrationMapping:
    """The versioned mapping applied when no mapping file is configured."""
    return MigrationMapping(
        name="afmz-legacy",
        version=MAPPING_VERSION,
        description="Legacy afmz_* tables to the new schema",
        table_mappings=[ADMIN_ACCOUNTS, CONFIG_CHOICES, CONTENT],
    )


def load_mapping(mapping_file: Optional[str] = None) -> MigrationMapping:
    """Load a mapping file, or fall back to the built-in mapping."""
    if mapping_file:
        return MigrationMapping.from_json_file(mapping_file)
    return default_mapping()
