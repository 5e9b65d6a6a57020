"""Tests für den Abfrage-Takt und die Änderungsmeldungen."""
import pytest

from conftest import FakeTools, ManualScheduler
from errors import ChannelClosed
from events import EventBus, WatcherStopped
from window_manager import WindowEnumerator
from window_matcher import WindowMatcher
from window_watcher import WindowWatcher

FIREFOX = "0x04000007  0 Navigator.firefox  laptop GitHub — Mozilla Firefox\n"
TERMINAL = "0x02000003  0 gnome-terminal-server.Gnome-terminal  laptop bash\n"
UNKNOWN = "0x05000001  0 qwertyuiop.Qwertyuiop  laptop Zzz\n"


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def watcher(tools, catalog, scheduler):
    return WindowWatcher(WindowEnumerator(run=tools), WindowMatcher(), catalog, scheduler=scheduler)


@pytest.fixture
def received(watcher):
    events = []
    watcher.subscribe(events.append)
    return events


def ids(event):
    return [r.window.window_id for r in event.results]


class TestPublishing:
    def test_first_tick_publishes(self, tools, watcher, received):
        tools.set(["wmctrl", "-lx"], FIREFOX)
        watcher.start()
        assert len(received) == 1
        assert received[0].results[0].application.name == "Firefox"

    def test_unchanged_snapshot_is_not_published(self, tools, watcher, scheduler, received):
        tools.set(["wmctrl", "-lx"], FIREFOX)
        watcher.start()
        scheduler.fire()
        scheduler.fire()
        assert len(received) == 1

    def test_open_and_close(self, tools, watcher, scheduler, received):
        tools.set(["wmctrl", "-lx"], FIREFOX)
        watcher.start()

        tools.set(["wmctrl", "-lx"], FIREFOX + TERMINAL)
        scheduler.fire()
        assert ids(received[-1]) == ["0x04000007", "0x02000003"]
        assert received[-1].results[1].application.name == "GNOME Terminal"

        tools.set(["wmctrl", "-lx"], TERMINAL)
        scheduler.fire()
        assert ids(received[-1]) == ["0x02000003"]
        assert len(received) == 3

    def test_focus_change_publishes(self, tools, watcher, scheduler, received):
        tools.set(["wmctrl", "-lx"], FIREFOX + TERMINAL)
        tools.set(["xdotool", "getactivewindow"], str(0x04000007))
        watcher.start()

        tools.set(["xdotool", "getactivewindow"], str(0x02000003))
        scheduler.fire()
        assert len(received) == 2
        assert [r.window.is_focused for r in received[-1].results] == [False, True]

    def test_title_change_publishes(self, tools, watcher, scheduler, received):
        tools.set(["wmctrl", "-lx"], TERMINAL)
        watcher.start()
        tools.set(["wmctrl", "-lx"], TERMINAL.replace("bash", "vim"))
        scheduler.fire()
        assert received[-1].results[0].window.title == "vim"

    def test_unmatched_window_is_published(self, tools, watcher, received):
        tools.set(["wmctrl", "-lx"], UNKNOWN)
        watcher.start()
        result = received[0].results[0]
        assert result.application is None
        assert result.window.title == "Zzz"

    def test_empty_desktop_publishes_once(self, tools, watcher, scheduler, received):
        tools.set(["wmctrl", "-lx"], "")
        watcher.start()
        scheduler.fire()
        assert len(received) == 1
        assert received[0].results == ()


class TestToolFailures:
    def test_failure_keeps_previous_snapshot(self, tools, watcher, scheduler, received):
        tools.set(["wmctrl", "-lx"], FIREFOX)
        watcher.start()

        tools.fail(["wmctrl", "-lx"])
        tools.fail(["wmctrl", "-l"])
        scheduler.fire()

        assert len(received) == 1
        assert ids(received[0]) == ["0x04000007"]
        assert watcher.running

    def test_background_error_is_logged(self, watcher, caplog):
        watcher._running = True
        watcher._busy = True
        watcher._deliver(watcher._generation, None, RuntimeError("kaputt"))
        assert not watcher.busy
        assert "kaputt" in caplog.text


class TestOverlap:
    def test_tick_skipped_while_busy(self, tools, catalog):
        scheduler = ManualScheduler(synchronous=False)
        watcher = WindowWatcher(WindowEnumerator(run=tools), WindowMatcher(), catalog, scheduler=scheduler)
        tools.set(["wmctrl", "-lx"], FIREFOX)

        watcher.start()
        assert watcher.busy
        scheduler.fire()
        scheduler.fire()
        assert watcher.skipped_ticks == 2
        assert len(scheduler.pending) == 1

        scheduler.finish()
        assert not watcher.busy
        assert len(watcher.snapshot) == 1

    def test_next_tick_runs_after_completion(self, tools, catalog):
        scheduler = ManualScheduler(synchronous=False)
        watcher = WindowWatcher(WindowEnumerator(run=tools), WindowMatcher(), catalog, scheduler=scheduler)
        tools.set(["wmctrl", "-lx"], FIREFOX)
        watcher.start()
        scheduler.finish()

        scheduler.fire()
        assert len(scheduler.pending) == 1
        assert watcher.skipped_ticks == 0


class TestStop:
    def test_late_result_is_discarded(self, tools, catalog):
        scheduler = ManualScheduler(synchronous=False)
        bus = EventBus()
        watcher = WindowWatcher(WindowEnumerator(run=tools), WindowMatcher(), catalog,
                                bus=bus, scheduler=scheduler)
        changes = []
        watcher.subscribe(changes.append)
        tools.set(["wmctrl", "-lx"], FIREFOX)

        watcher.start()
        watcher.stop()
        scheduler.finish()

        assert changes == []
        assert watcher.snapshot == ()

    def test_stop_notifies_and_closes(self, watcher):
        stopped = []
        watcher.bus.subscribe(WatcherStopped, stopped.append)
        watcher.start()
        watcher.stop()
        assert stopped == [WatcherStopped()]
        assert watcher.bus.closed
        assert not watcher.running

    def test_stop_removes_timer(self, watcher, scheduler):
        watcher.start()
        assert scheduler.timers
        watcher.stop()
        assert scheduler.timers == {}

    def test_stop_twice_is_harmless(self, watcher):
        watcher.start()
        watcher.stop()
        watcher.stop()

    def test_restart_after_stop_fails(self, watcher):
        watcher.start()
        watcher.stop()
        with pytest.raises(ChannelClosed):
            watcher.start()

    def test_subscribe_after_stop_fails(self, watcher):
        watcher.start()
        watcher.stop()
        with pytest.raises(ChannelClosed):
            watcher.subscribe(lambda event: None)


class TestPollNow:
    def test_poll_without_start(self, catalog):
        tools = FakeTools()
        tools.set(["wmctrl", "-lx"], FIREFOX + UNKNOWN)
        watcher = WindowWatcher(WindowEnumerator(run=tools), WindowMatcher(), catalog,
                                scheduler=ManualScheduler())
        results = watcher.poll_now()
        assert [r.application.name if r.application else None for r in results] == ["Firefox", None]

    def test_poll_publishes_on_change(self, tools, watcher, received):
        tools.set(["wmctrl", "-lx"], FIREFOX)
        watcher.poll_now()
        watcher.poll_now()
        assert len(received) == 1


class TestCommands:
    def test_activate_delegates(self, tools, watcher):
        tools.set(["wmctrl", "-i", "-a", "0x04000007"], "")
        assert watcher.activate_window("0x04000007")

    def test_close_delegates(self, tools, watcher):
        tools.set(["wmctrl", "-i", "-c", "0x04000007"], "")
        assert watcher.close_window("0x04000007")
