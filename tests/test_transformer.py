"""Tests for the transform engine and the built-in legacy mappings."""

from datetime import datetime, timezone

import pytest

from legacy_migration.exceptions import MappingInvalidError
from legacy_migration.models.schema import (
    FieldMapping,
    MigrationMapping,
    TableMapping,
    TransformType,
)
from legacy_migration.services.mappings import (
    ADMIN_ACCOUNTS,
    CONFIG_CHOICES,
    CONTENT,
    default_mapping,
    load_mapping,
)
from legacy_migration.services.transformer import TransformEngine

RUN_STARTED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def transformer() -> TransformEngine:
    return TransformEngine(now=RUN_STARTED)


class TestAdminAccounts:
    def test_epoch_login_becomes_utc_datetime(self, transformer):
        row = ["1", "admin", "admin@afmz.org", "Site Admin", "hash", "super", "1700000000"]
        record = transformer.transform_row(row, ADMIN_ACCOUNTS, 0)

        assert record.target_table == "legacy_admin_accounts"
        assert record.data == {
            "legacy_admin_id": 1,
            "username": "admin",
            "email": "admin@afmz.org",
            "full_name": "Site Admin",
            "password_hash": "hash",
            "admin_type": "super",
            "last_login": datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc),
        }
        assert record.key == "admin"
        assert record.conflict_columns == ["username"]

    def test_missing_login(self, transformer):
        row = ["2", "editor", None, None, "hash", "editor", None]
        record = transformer.transform_row(row, ADMIN_ACCOUNTS, 1)
        assert record.data["last_login"] is None
        assert record.data["email"] is None

    def test_short_row(self, transformer):
        with pytest.raises(MappingInvalidError) as exc_info:
            transformer.transform_row(["3", "shorty"], ADMIN_ACCOUNTS, 2)
        assert exc_info.value.row_index == 2

    def test_unparseable_epoch(self, transformer):
        row = ["4", "bad", None, None, "hash", "editor", "yesterday"]
        with pytest.raises(MappingInvalidError):
            transformer.transform_row(row, ADMIN_ACCOUNTS, 3)


class TestContent:
    def test_known_category(self, transformer):
        row = ["1", "Field day", "Body", "event", "2019-03-14 09:00:00"]
        record = transformer.transform_row(row, CONTENT, 0)

        assert record.target_table == "news_events"
        assert record.data["event_type"] == "conference"
        assert record.data["legacy_type"] == "event"
        assert record.data["status"] == "published"
        assert record.data["created_at"] == datetime(2019, 3, 14, 9, 0, tzinfo=timezone.utc)

    def test_category_lookup_ignores_case(self, transformer):
        record = transformer.transform_row(["2", "t", "c", "Webinar", "2020-06-01"], CONTENT, 0)
        assert record.data["event_type"] == "workshop"

    def test_unknown_category_falls_back_to_news(self, transformer):
        record = transformer.transform_row(["3", "t", "c", "press-release", None], CONTENT, 0)
        assert record.data["event_type"] == "news"

    def test_defaults_for_missing_values(self, transformer):
        record = transformer.transform_row(["4", "", None, None, None], CONTENT, 0)

        assert record.data["title"] == "Untitled"
        assert record.data["content"] == ""
        assert record.data["event_type"] == "news"
        assert record.data["created_at"] == RUN_STARTED

    def test_zero_date_is_absent(self, transformer):
        record = transformer.transform_row(["5", "t", "c", "news", "0000-00-00 00:00:00"], CONTENT, 0)
        assert record.data["created_at"] == RUN_STARTED

    def test_offset_dates_are_kept_aware(self, transformer):
        record = transformer.transform_row(["6", "t", "c", "news", "2021-01-01T10:00:00+02:00"], CONTENT, 0)
        assert record.data["created_at"] == datetime(2021, 1, 1, 8, 0, tzinfo=timezone.utc)


def test_config_choice_mapping(transformer):
    row = ["7", "1", "equipment", "Tractors", "tractors", "0", None, "NULL"]
    record = transformer.transform_row(row, CONFIG_CHOICES, 0)

    assert record.data["legacy_choice_id"] == 7
    assert record.data["category"] == "equipment"
    assert record.data["description"] is None
    assert record.data["extras"] == "NULL"
    assert record.key == "7"


def test_custom_transform(transformer):
    mapping = TableMapping(
        source_table="t",
        target_table="out",
        field_mappings=[
            FieldMapping(0, "shout", TransformType.CUSTOM, {"function": "upper"}),
        ],
    )
    transformer.register_transform("upper", lambda value, config: value.upper())

    record = transformer.transform_row(["hello"], mapping, 0)
    assert record.data == {"shout": "HELLO"}
    assert record.key == "row 1"


def test_default_mapping_covers_legacy_tables():
    mapping = default_mapping()

    assert mapping.source_tables == ["afmz_admin_accounts", "afmz_conf_choices", "afmz_content"]
    assert mapping.get("afmz_content").target_table == "news_events"
    assert mapping.get("afmz_unknown") is None
    assert ADMIN_ACCOUNTS.expected_width == 7
    assert CONTENT.expected_width == 5


def test_mapping_file_round_trip(tmp_path):
    path = tmp_path / "mapping.json"
    default_mapping().save_to_json(str(path))

    loaded = load_mapping(str(path))
    assert isinstance(loaded, MigrationMapping)
    assert loaded.version == default_mapping().version
    assert loaded.get("afmz_content").field_mappings[3].transform_config["default"] == "news"
    assert loaded.get("afmz_admin_accounts").conflict_columns == ["username"]


@pytest.mark.parametrize("epoch", ["99999999999999999", "1e400", "-99999999999999999"])
def test_out_of_range_epoch(transformer, epoch):
    row = ["5", "future", None, None, "hash", "editor", epoch]
    with pytest.raises(MappingInvalidError):
        transformer.transform_row(row, ADMIN_ACCOUNTS, 4)


def test_missing_key_value(transformer):
    with pytest.raises(MappingInvalidError) as exc_info:
        transformer.transform_row([None, "t", "c", "news", "2020-01-01"], CONTENT, 0)
    assert "legacy_id" in str(exc_info.value)


def test_named_custom_transform_from_json(transformer):
    field_mapping = FieldMapping.from_dict({"position": 0, "target_field": "slug", "transform": "slugify"})
    assert field_mapping.transform == TransformType.CUSTOM
    assert field_mapping.transform_config == {"function": "slugify"}

    mapping = TableMapping(source_table="t", target_table="out", field_mappings=[field_mapping])
    transformer.register_transform("slugify", lambda value, config: value.lower().replace(" ", "-"))

    assert transformer.transform_row(["Walking Tractors"], mapping, 0).data == {"slug": "walking-tractors"}
