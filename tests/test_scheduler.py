from dataclasses import replace
import logging
from pathlib import Path

import pytest

from conftest import part_line, write_fixed_width
from partsloader import scheduler
from partsloader.config import Settings
from partsloader.database import build_session_factory


REGISTRY = """\
tables:
  "400":
    table: parts
    reference: true
    columns:
      - {name: part_code, type: string, start: 0, width: 6}
      - {name: quantity, type: integer, start: 6, width: 4}
      - {name: valid_from, type: date, start: 10, width: 8}
"""


class FakeScheduler:
    instances: list["FakeScheduler"] = []

    def __init__(self, timezone: str) -> None:
        self.timezone = timezone
        self.jobs: list[dict[str, object]] = []
        self.started = False
        FakeScheduler.instances.append(self)

    def add_job(self, func, trigger, **kwargs) -> None:
        self.jobs.append({"func": func, "trigger": trigger, **kwargs})

    def start(self) -> None:
        self.started = True


def test_daily_import_converts_new_files(test_settings: Settings, temp_workspace: Path) -> None:
    Path(test_settings.tables_file).write_text(REGISTRY, encoding="utf-8")
    source = write_fixed_width(temp_workspace / "data" / "reference" / "400.dat", [part_line("AB-1", "2", "")])

    scheduler._run_daily_import(test_settings, build_session_factory(test_settings.database_url))

    assert Path(f"{source}.processed").exists()
    assert (temp_workspace / "sql" / "400.dat.sql").exists()


def test_daily_import_survives_configuration_errors(
    caplog: pytest.LogCaptureFixture, test_settings: Settings, temp_workspace: Path
) -> None:
    settings = replace(test_settings, tables_file=str(Path(test_settings.tables_file).with_name("missing.yaml")))

    with caplog.at_level(logging.ERROR, logger="partsloader.scheduler"):
        scheduler._run_daily_import(settings, build_session_factory(settings.database_url))

    assert "scheduled import failed" in caplog.messages
    assert not (temp_workspace / "sql").exists()


def test_scheduler_registers_daily_cron_job(monkeypatch: pytest.MonkeyPatch, test_settings: Settings) -> None:
    monkeypatch.setattr(scheduler, "BlockingScheduler", FakeScheduler)
    session_factory = build_session_factory(test_settings.database_url)

    scheduler.start_scheduler(test_settings, session_factory)

    fake = FakeScheduler.instances[-1]
    assert fake.started is True
    assert fake.timezone == "UTC"
    assert fake.jobs[0]["trigger"] == "cron"
    assert fake.jobs[0]["hour"] == 3
    assert fake.jobs[0]["id"] == "daily_import"
