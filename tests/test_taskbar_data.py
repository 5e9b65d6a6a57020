"""Tests für Schnappschuss und Gruppierung der Taskbar-Daten."""
from models import ApplicationDescriptor, MatchResult, WindowRecord
from taskbar_data import group_by_application, snapshot_key

CODE = ApplicationDescriptor(name="VS Code", launch_command="code")


def result(window_id, app=None, title="t", focused=False):
    return MatchResult(WindowRecord(window_id=window_id, title=title, is_focused=focused), app)


def test_grouping_keeps_first_occurrence_order():
    results = [result("0x1", CODE), result("0x2"), result("0x3", CODE), result("0x4")]
    groups = group_by_application(results)
    assert [(app.name if app else None, [r.window.window_id for r in members]) for app, members in groups] == [
        ("VS Code", ["0x1", "0x3"]),
        (None, ["0x2"]),
        (None, ["0x4"]),
    ]


def test_snapshot_key_ignores_order():
    a = [result("0x1"), result("0x2")]
    assert snapshot_key(a) == snapshot_key(list(reversed(a)))


def test_snapshot_key_sees_focus_and_title():
    base = snapshot_key([result("0x1")])
    assert snapshot_key([result("0x1", focused=True)]) != base
    assert snapshot_key([result("0x1", title="other")]) != base
