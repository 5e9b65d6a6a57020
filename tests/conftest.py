"""Gemeinsame Test-Helfer: gefälschte Tools und ein synchroner Scheduler."""
import pytest

from errors import ToolUnavailable
from models import ApplicationDescriptor


class FakeTools:
    """
    Ersatz für run_tool: Antworten werden pro Kommandozeile hinterlegt.
    Nicht hinterlegte Kommandos verhalten sich wie ein fehlendes Tool.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def set(self, args, output):
        self.responses[tuple(args)] = output

    def fail(self, args, reason="Exit-Code 1"):
        self.responses[tuple(args)] = ToolUnavailable(args[0], reason)

    def __call__(self, args, timeout):
        key = tuple(args)
        self.calls.append(key)
        response = self.responses.get(key)
        if response is None:
            raise ToolUnavailable(args[0], "nicht installiert")
        if isinstance(response, Exception):
            raise response
        return response

    def count(self, *prefix):
        return sum(1 for c in self.calls if c[: len(prefix)] == prefix)


class ManualScheduler:
    """
    Scheduler-Double: Timer werden von Hand ausgelöst, Hintergrundarbeit
    wird erst bei finish() ausgeführt und zugestellt.
    """

    def __init__(self, synchronous=True):
        self.synchronous = synchronous
        self.timers = {}
        self.pending = []
        self._next_id = 1

    def add_timeout(self, interval_ms, callback):
        source_id = self._next_id
        self._next_id += 1
        self.timers[source_id] = callback
        return source_id

    def remove(self, source_id):
        self.timers.pop(source_id, None)

    def call_soon(self, callback, *args):
        callback(*args)

    def run_in_background(self, func, on_done):
        if self.synchronous:
            on_done(func(), None)
        else:
            self.pending.append((func, on_done))

    def fire(self):
        for source_id, callback in list(self.timers.items()):
            if not callback():
                self.timers.pop(source_id, None)

    def finish(self):
        pending, self.pending = self.pending, []
        for func, on_done in pending:
            on_done(func(), None)


@pytest.fixture
def tools():
    return FakeTools()


@pytest.fixture
def catalog():
    return [
        ApplicationDescriptor(name="Files", launch_command="nautilus --new-window", icon_hint="org.gnome.Nautilus"),
        ApplicationDescriptor(name="Firefox", launch_command="firefox", icon_hint="firefox"),
        ApplicationDescriptor(name="GNOME Terminal", launch_command="gnome-terminal", icon_hint="utilities-terminal"),
        ApplicationDescriptor(name="VS Code", launch_command="/usr/share/code/code --unity-launch", icon_hint="vscode"),
    ]
