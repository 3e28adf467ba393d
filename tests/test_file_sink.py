from __future__ import annotations

import json
import os
from pathlib import Path

from authwatch.logging import RotatingFileSink

from conftest import FakeClock, internal_errors


def _sink(tmp_path: Path, clock: FakeClock, **kwargs) -> RotatingFileSink:
    kwargs.setdefault("max_file_size", 10 * 1024 * 1024)
    kwargs.setdefault("max_files", 10)
    return RotatingFileSink(kwargs.pop("directory", tmp_path / "logs"), clock=clock, **kwargs)


def test_file_sink_creates_log_directory(tmp_path: Path, clock: FakeClock):
    directory = tmp_path / "nested" / "dir"
    sink = _sink(tmp_path, clock, directory=directory)

    assert sink.write_lines([json.dumps({"kind": "event"})]) is True

    assert directory.is_dir()
    assert sink.active_path().exists()


def test_active_file_is_named_after_utc_day(tmp_path: Path, clock: FakeClock):
    sink = _sink(tmp_path, clock)

    # 1_700_000_000 is 2023-11-14T22:13:20Z
    assert sink.active_path().name == "security-2023-11-14.log"

    clock.advance(2 * 3600)
    assert sink.active_path().name == "security-2023-11-15.log"


def test_file_sink_writes_newline_delimited_json(tmp_path: Path, clock: FakeClock):
    sink = _sink(tmp_path, clock)

    sink.write_lines([json.dumps({"event_id": "a"}), json.dumps({"event_id": "b"})])
    sink.write_lines([json.dumps({"event_id": "c"})])

    lines = sink.active_path().read_text(encoding="utf-8").strip().split("\n")
    assert [json.loads(line)["event_id"] for line in lines] == ["a", "b", "c"]


def test_file_sink_appends_across_instances(tmp_path: Path, clock: FakeClock):
    _sink(tmp_path, clock).write_lines(["{}"])
    second = _sink(tmp_path, clock)
    second.write_lines(["{}"])

    assert second.active_path().read_text(encoding="utf-8") == "{}\n{}\n"


def test_rotation_moves_full_file_aside_before_append(tmp_path: Path, clock: FakeClock):
    sink = _sink(tmp_path, clock, max_file_size=50)
    first = "a" * 30
    second = "b" * 30

    sink.write_lines([first])
    sink.write_lines([second])

    active = sink.active_path()
    assert active.read_text(encoding="utf-8") == second + "\n"

    rotated = [p for p in sink.log_files() if p != active]
    assert len(rotated) == 1
    assert rotated[0].name == f"security-2023-11-14.{int(clock() * 1000)}.log"
    assert rotated[0].read_text(encoding="utf-8") == first + "\n"


def test_no_rotation_when_batch_fits_exactly(tmp_path: Path, clock: FakeClock):
    sink = _sink(tmp_path, clock, max_file_size=20)

    sink.write_lines(["x" * 9])
    sink.write_lines(["y" * 9])

    assert len(sink.log_files()) == 1
    assert sink.active_path().stat().st_size == 20


def test_oversized_batch_goes_to_empty_file_without_rotation(tmp_path: Path, clock: FakeClock):
    sink = _sink(tmp_path, clock, max_file_size=10)

    assert sink.write_lines(["z" * 40]) is True

    assert len(sink.log_files()) == 1


def test_rotated_names_stay_unique_within_one_millisecond(tmp_path: Path, clock: FakeClock):
    sink = _sink(tmp_path, clock, max_file_size=5)

    for _ in range(4):
        sink.write_lines(["line"])

    names = sorted(p.name for p in sink.log_files())
    assert len(names) == 4
    assert len(set(names)) == 4


def test_cleanup_removes_oldest_files_beyond_limit(tmp_path: Path, clock: FakeClock):
    directory = tmp_path / "logs"
    directory.mkdir()
    paths = []
    for index in range(6):
        path = directory / f"security-2023-11-0{index + 1}.log"
        path.write_text("{}\n", encoding="utf-8")
        os.utime(path, (1_000_000 + index, 1_000_000 + index))
        paths.append(path)
    unrelated = directory / "notes.txt"
    unrelated.write_text("keep me", encoding="utf-8")

    sink = _sink(tmp_path, clock, directory=directory, max_files=4)
    removed = sink.cleanup_old_log_files()

    assert removed == paths[:2]
    assert sorted(sink.log_files()) == paths[2:]
    assert unrelated.exists()


def test_cleanup_is_noop_under_limit(tmp_path: Path, clock: FakeClock):
    sink = _sink(tmp_path, clock, max_files=3)
    sink.write_lines(["{}"])

    assert sink.cleanup_old_log_files() == []
    assert len(sink.log_files()) == 1


def test_rotation_enforces_retention(tmp_path: Path, clock: FakeClock):
    sink = _sink(tmp_path, clock, max_file_size=5, max_files=2)

    for _ in range(5):
        sink.write_lines(["line"])
        clock.advance(0.01)

    assert len(sink.log_files()) == 2
    assert sink.active_path().exists()


def test_unwritable_directory_drops_batch_and_reports_once(tmp_path: Path, clock: FakeClock, capture):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    sink = _sink(tmp_path, clock, directory=blocker / "logs")

    assert sink.write_lines(["{}", "{}"]) is False

    errors = internal_errors(capture)
    assert len(errors) == 1
    assert "[SECURITY_LOGGER_ERROR]" in errors[0].getMessage()


def test_failed_rotation_drops_batch(tmp_path: Path, clock: FakeClock, capture, monkeypatch):
    sink = _sink(tmp_path, clock, max_file_size=5)
    sink.write_lines(["first"])

    def _fail(self, target):
        raise PermissionError("read-only")

    monkeypatch.setattr(Path, "rename", _fail)

    assert sink.write_lines(["second"]) is False
    assert sink.active_path().read_text(encoding="utf-8") == "first\n"
    assert len(internal_errors(capture)) == 1


def test_daily_files_are_bounded_by_retention(tmp_path: Path, clock: FakeClock):
    sink = _sink(tmp_path, clock, max_files=2)

    for _ in range(5):
        sink.write_lines(["{}"])
        clock.advance(86400)

    names = sorted(p.name for p in sink.log_files())
    assert names == ["security-2023-11-17.log", "security-2023-11-18.log"]
