"""GLib-Anbindung für den Fenster-Watcher.

Timer und Ergebniszustellung laufen im GLib-Hauptthread, die eigentliche
Abfrage (mehrere blockierende Tool-Aufrufe) in einem Hintergrund-Thread.
"""
import logging
import threading

import gi
gi.require_version("GLib", "2.0")
from gi.repository import GLib

logger = logging.getLogger(__name__)


class GLibScheduler:
    def add_timeout(self, interval_ms, callback):
        """
        Ruft callback() alle interval_ms Millisekunden auf, solange es True liefert.
        Rückgabe: Source-ID für remove().
        """
        return GLib.timeout_add(interval_ms, callback)

    def remove(self, source_id):
        GLib.source_remove(source_id)

    def call_soon(self, callback, *args):
        def _once():
            callback(*args)
            return GLib.SOURCE_REMOVE
        GLib.idle_add(_once)

    def run_in_background(self, func, on_done):
        """
        Führt func() in einem Thread aus und stellt on_done(result, error)
        im Hauptthread zu.
        """
        def _worker():
            try:
                result = func()
            except Exception as e:
                logger.exception("Hintergrundabfrage fehlgeschlagen")
                self.call_soon(on_done, None, e)
                return
            self.call_soon(on_done, result, None)

        thread = threading.Thread(target=_worker, name="karpdock-poll", daemon=True)
        thread.start()
        return thread


def new_main_loop():
    return GLib.MainLoop()
