"""End-to-end tests for the migration orchestrator."""

import json

import pytest
from sqlalchemy import inspect

from legacy_migration import orchestrator as orchestrator_module
from legacy_migration.exceptions import MigrationInProgressError, SourceUnavailableError
from legacy_migration.loaders import DatabaseLoader
from legacy_migration.models.migration import LogSeverity, MigrationConfig, MigrationStatus
from legacy_migration.orchestrator import MigrationOrchestrator

ADMIN_TABLE = (
    "CREATE TABLE `afmz_admin_accounts` (\n"
    "  `id` int(11) NOT NULL,\n"
    "  `username` varchar(50) NOT NULL,\n"
    "  `email` varchar(100),\n"
    "  `full_name` varchar(100),\n"
    "  `password` varchar(255),\n"
    "  `admin_type` varchar(20),\n"
    "  `last_login` int(11)\n"
    ");\n"
)


@pytest.fixture
def orchestrator(config, engine):
    return MigrationOrchestrator(config, engine=engine)


def messages(run, severity=None):
    return [e.message for e in run.log.entries if severity is None or e.severity == severity]


def test_full_run(orchestrator):
    run = orchestrator.run_migration()

    assert run.status == MigrationStatus.COMPLETED
    assert [(s.source_table, s.records_processed, s.records_succeeded) for s in run.steps] == [
        ("afmz_admin_accounts", 2, 2),
        ("afmz_conf_choices", 3, 3),
        ("afmz_content", 3, 3),
    ]
    assert run.total_records_processed == 8
    assert run.total_records_failed == 0

    summary = orchestrator.generate_summary()
    assert summary["total_operations"] == 13
    assert summary["success_count"] == 13
    assert summary["warning_count"] == 0
    assert summary["error_count"] == 0
    assert len(summary["log"]) == 13

    log_messages = messages(run)
    assert "Migrating 2 admin accounts" in log_messages
    assert "Migrated admin account: sobrien" in log_messages
    assert "Migrated config choice: 3" in log_messages
    assert "Migrating 3 content items" in log_messages


def test_rows_land_in_destination(orchestrator):
    run = orchestrator.run_migration()

    admins = orchestrator.preview_table("legacy_admin_accounts")
    assert [a["username"] for a in admins] == ["admin", "sobrien"]
    assert admins[1]["full_name"] == "Sean O'Brien"
    assert admins[1]["last_login"] is None

    content = orchestrator.preview_table("news_events")
    assert [c["event_type"] for c in content] == ["conference", "workshop", "news"]
    assert content[2]["title"] == "Untitled"
    assert content[2]["content"] == ""
    assert content[2]["created_at"].replace(tzinfo=None) == run.started_at.replace(tzinfo=None)
    assert {c["status"] for c in content} == {"published"}


def test_rerun_is_idempotent(orchestrator):
    orchestrator.run_migration()
    second = orchestrator.run_migration()

    assert [s.records_skipped for s in second.steps] == [2, 3, 3]
    assert second.total_records_succeeded == 0
    skipped = [m for m in messages(second) if m.startswith("Skipped duplicate")]
    assert len(skipped) == 8
    assert "Skipped duplicate admin account: admin" in skipped
    assert len(orchestrator.preview_table("news_events")) == 3


def test_short_row_does_not_stop_siblings(write_dump, database_url, engine):
    dump = write_dump(
        ADMIN_TABLE
        + "INSERT INTO `afmz_admin_accounts` VALUES "
        "(1,'admin','a@afmz.org','Admin','h','super',1700000000),"
        "(2,'short'),"
        "(3,'third','t@afmz.org','Third','h','editor',NULL);\n"
    )
    config = MigrationConfig(dump_path=str(dump), database_url=database_url)
    run = MigrationOrchestrator(config, engine=engine).run_migration()

    step = run.get_step("afmz_admin_accounts")
    assert step.records_processed == 3
    assert step.records_succeeded == 2
    assert step.records_failed == 1

    errors = messages(run, LogSeverity.ERROR)
    assert len(errors) == 1
    assert errors[0].startswith("Error mapping admin account:")
    assert "Migrated admin account: third" in messages(run)


def test_missing_legacy_tables_warn(write_dump, database_url, engine):
    dump = write_dump(ADMIN_TABLE + "INSERT INTO `afmz_admin_accounts` VALUES (1,'admin',NULL,NULL,'h','super',NULL);\n")
    config = MigrationConfig(dump_path=str(dump), database_url=database_url)
    run = MigrationOrchestrator(config, engine=engine).run_migration()

    assert run.status == MigrationStatus.COMPLETED
    assert messages(run, LogSeverity.WARNING) == [
        "No config choice data found",
        "No content item data found",
    ]
    assert len(run.steps) == 1


def test_missing_dump_fails_run(tmp_path, database_url, engine):
    config = MigrationConfig(dump_path=str(tmp_path / "absent.sql"), database_url=database_url)
    orchestrator = MigrationOrchestrator(config, engine=engine)

    with pytest.raises(SourceUnavailableError):
        orchestrator.run_migration()

    assert orchestrator.run.status == MigrationStatus.FAILED
    assert orchestrator.generate_summary()["error_count"] == 1
    assert inspect(engine).get_table_names() == []


def test_concurrent_run_is_rejected(orchestrator):
    orchestrator_module._RUN_LOCK.acquire()
    try:
        with pytest.raises(MigrationInProgressError):
            orchestrator.run_migration()
    finally:
        orchestrator_module._RUN_LOCK.release()

    assert orchestrator.run_migration().status == MigrationStatus.COMPLETED


def test_dry_run_writes_nothing(config, engine):
    config.dry_run = True
    run = MigrationOrchestrator(config, engine=engine).run_migration()

    assert run.dry_run
    assert run.total_records_succeeded == 8
    assert inspect(engine).get_table_names() == []


def test_status_and_preview(orchestrator):
    assert orchestrator.migration_status() == {"migration_tables_exist": False, "tables": []}

    orchestrator.run_migration()

    assert orchestrator.migration_status() == {
        "migration_tables_exist": True,
        "tables": ["legacy_admin_accounts", "legacy_config_choices"],
    }
    assert len(orchestrator.preview_table("legacy_config_choices", limit=1)) == 1


def test_report_is_saved(config, engine, tmp_path):
    config.report_dir = str(tmp_path / "reports")
    run = MigrationOrchestrator(config, engine=engine).run_migration()

    reports = list((tmp_path / "reports").glob("migration_report_*.json"))
    assert len(reports) == 1

    report = json.loads(reports[0].read_text())
    assert report["id"] == run.id
    assert report["status"] == "completed"
    assert report["summary"]["total_operations"] == 13


def test_inspect_dump(orchestrator):
    result = orchestrator.inspect_dump()
    assert {name: len(t) for name, t in result.tables.items()} == {
        "afmz_admin_accounts": 2,
        "afmz_conf_choices": 3,
        "afmz_content": 3,
    }


def test_summary_before_any_run(orchestrator):
    assert orchestrator.generate_summary() == {
        "total_operations": 0,
        "error_count": 0,
        "warning_count": 0,
        "success_count": 0,
        "log": [],
    }


def test_out_of_range_epoch_does_not_stop_siblings(write_dump, database_url, engine):
    dump = write_dump(
        ADMIN_TABLE
        + "INSERT INTO `afmz_admin_accounts` VALUES "
        "(1,'admin','a@afmz.org','Admin','h','super',1700000000),"
        "(2,'future','f@afmz.org','Future','h','editor','99999999999999999'),"
        "(3,'third','t@afmz.org','Third','h','editor',NULL);\n"
    )
    config = MigrationConfig(dump_path=str(dump), database_url=database_url)
    orchestrator = MigrationOrchestrator(config, engine=engine)
    run = orchestrator.run_migration()

    assert run.status == MigrationStatus.COMPLETED
    step = run.get_step("afmz_admin_accounts")
    assert (step.records_succeeded, step.records_failed) == (2, 1)

    errors = messages(run, LogSeverity.ERROR)
    assert len(errors) == 1
    assert errors[0].startswith("Error mapping admin account:")
    assert [a["username"] for a in orchestrator.preview_table("legacy_admin_accounts")] == ["admin", "third"]


def test_unexpected_loader_error_does_not_stop_siblings(config, engine):
    class FlakyLoader(DatabaseLoader):
        def load_record(self, record):
            if record.key == "admin":
                raise RuntimeError("connection reset")
            return super().load_record(record)

    orchestrator = MigrationOrchestrator(config, engine=engine, loader=FlakyLoader(engine))
    run = orchestrator.run_migration()

    assert run.status == MigrationStatus.COMPLETED
    assert run.get_step("afmz_admin_accounts").records_failed == 1
    assert "Error migrating admin account admin: connection reset" in messages(run, LogSeverity.ERROR)
    assert run.get_step("afmz_content").records_succeeded == 3


def test_content_without_legacy_id_is_never_inserted(write_dump, database_url, engine):
    dump = write_dump(
        "CREATE TABLE `afmz_content` (`id` int, `title` varchar(255), `content` text, "
        "`type` varchar(30), `date` datetime);\n"
        "INSERT INTO `afmz_content` VALUES "
        "(NULL,'t','c','news','2020-01-01'),"
        "(9,'kept','c','news','2020-01-01');\n"
    )
    config = MigrationConfig(dump_path=str(dump), database_url=database_url)
    orchestrator = MigrationOrchestrator(config, engine=engine)

    for _ in range(2):
        run = orchestrator.run_migration()
        step = run.get_step("afmz_content")
        assert step.records_failed == 1
        assert any("no value for key legacy_id" in m for m in messages(run, LogSeverity.ERROR))

    assert step.records_skipped == 1
    assert [c["legacy_id"] for c in orchestrator.preview_table("news_events")] == [9]
