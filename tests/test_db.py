import sqlite3

from imgsync import db


class TrackingConnection(sqlite3.Connection):
    closed = []

    def close(self):
        TrackingConnection.closed.append(self)
        super().close()


def test_journal_connections_are_closed(monkeypatch):
    opened = []

    def connect():
        conn = sqlite3.connect(db._resolve_db_path(), factory=TrackingConnection)
        conn.row_factory = sqlite3.Row
        opened.append(conn)
        return conn

    TrackingConnection.closed = []
    monkeypatch.setattr(db, "connect", connect)

    db.log_event("info", "hello", service_name="gtm", revision="gtm-001")
    events = db.latest_events(1)

    assert events[0]["level"] == "INFO"
    assert events[0]["message"] == "hello"
    assert len(opened) == 2
    assert TrackingConnection.closed == opened


def test_log_event_survives_missing_table(caplog):
    conn = db.connect()
    conn.execute("DROP TABLE events")
    conn.close()

    with caplog.at_level("WARNING", logger="imgsync"):
        db.log_event("INFO", "still logged", service_name="gtm")

    assert any("still logged" in r.getMessage() for r in caplog.records)
    assert any("Event not journalled" in r.getMessage() for r in caplog.records)
