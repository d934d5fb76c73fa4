import os
import sqlite3

from autoheal import db


def test_log_event_writes_row(event_db):
    db.log_event("warn", "restarting", container_id="abc", container_name="web")

    conn = sqlite3.connect(event_db)
    rows = conn.execute("SELECT level, container_id, container_name, message FROM events").fetchall()
    conn.close()

    assert rows == [("WARN", "abc", "web", "restarting")]


def test_latest_events_newest_first_and_filtered():
    db.log_event("INFO", "one", container_name="web")
    db.log_event("INFO", "two", container_name="db")
    db.log_event("INFO", "three", container_name="web")

    assert [e["message"] for e in db.latest_events()] == ["three", "two", "one"]
    assert [e["message"] for e in db.latest_events(limit=1)] == ["three"]
    assert [e["message"] for e in db.latest_events(container_name="web")] == ["three", "one"]


def test_directory_path_gets_a_file_inside(tmp_path):
    target = tmp_path / "state"
    target.mkdir()
    db.use_path(str(target))
    db.log_event("INFO", "hello")
    assert os.path.isfile(target / "autoheal.db")


def test_log_event_mirrors_to_logger(caplog):
    with caplog.at_level("INFO", logger="autoheal"):
        db.log_event("ERROR", "restart failed", container_id="0123456789abcdef", container_name="web")
    assert any(r.levelname == "ERROR" and "web (0123456789ab)" in r.getMessage() for r in caplog.records)
