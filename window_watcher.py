"""Periodische Fensterabfrage mit Änderungserkennung.

Ablauf pro Takt: Fenster abfragen, jedem Fenster eine Anwendung zuordnen,
mit dem vorherigen Stand vergleichen und nur bei einer Änderung ein
WindowsChanged-Event veröffentlichen. Läuft ein Takt noch, wird der
nächste übersprungen (nicht nachgeholt).
"""
import logging

import config
import config_loader
from desktop_entries import ApplicationCatalog
from errors import ChannelClosed
from events import EventBus, WatcherStopped, WindowsChanged
from icon_resolver import IconResolver
from process_detector import detect_running
from taskbar_data import build_snapshot, snapshot_key
from window_manager import WindowEnumerator
from window_matcher import WindowMatcher

logger = logging.getLogger(__name__)


class WindowWatcher:
    """
    Besitzt den Timer, den letzten Stand und den Event-Kanal.
    Lebenszyklus: start() ... stop(). Nach stop() ist der Kanal geschlossen.
    """

    def __init__(self, enumerator, matcher, catalog, bus=None, scheduler=None,
                 interval_ms=config.POLL_INTERVAL_MS):
        self.enumerator = enumerator
        self.matcher = matcher
        self.catalog = catalog
        self.bus = bus or EventBus()
        self.interval_ms = interval_ms
        self._scheduler = scheduler
        self._source_id = None
        self._running = False
        self._busy = False
        self._generation = 0
        self._snapshot = ()
        self._key = None
        self.skipped_ticks = 0

    @classmethod
    def from_config(cls, cfg=None, scheduler=None):
        """
        Baut Watcher samt Katalog, Icon-Auflösung und Fensterabfrage aus der Konfiguration.
        """
        cfg = cfg or config_loader.get_config()
        dock_title, dock_class = config_loader.get_dock_identity(cfg)
        enumerator = WindowEnumerator(
            timeout=config_loader.get_tool_timeout(cfg),
            dock_title=dock_title,
            dock_class=dock_class,
            excluded_classes=config_loader.get_excluded_classes(cfg),
            excluded_titles=config_loader.get_excluded_titles(cfg),
        )
        resolver = IconResolver(fallback_themes=config_loader.get_fallback_themes(cfg))
        return cls(
            enumerator,
            WindowMatcher(resolver),
            ApplicationCatalog(),
            scheduler=scheduler,
            interval_ms=config_loader.get_poll_interval_ms(cfg),
        )

    @property
    def scheduler(self):
        if self._scheduler is None:
            from mainloop import GLibScheduler
            self._scheduler = GLibScheduler()
        return self._scheduler

    @property
    def running(self) -> bool:
        return self._running

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def snapshot(self):
        """Zuletzt veröffentlichte Fensterliste."""
        return self._snapshot

    def subscribe(self, callback):
        """
        Meldet callback(WindowsChanged) an. Rückgabe: Subscription mit cancel().
        """
        return self.bus.subscribe(WindowsChanged, callback)

    # ─── Lebenszyklus ──────────────────────────────────────────────────────────

    def start(self):
        if self._running:
            return
        if self.bus.closed:
            raise ChannelClosed("Watcher wurde bereits gestoppt")
        self._running = True
        self._tick()
        self._source_id = self.scheduler.add_timeout(self.interval_ms, self._on_timeout)
        logger.debug("Watcher gestartet (%d ms)", self.interval_ms)

    def stop(self):
        if not self._running:
            return
        self._running = False
        if self._source_id is not None:
            self.scheduler.remove(self._source_id)
            self._source_id = None
        # Ergebnisse laufender Abfragen gehören zur alten Generation und werden verworfen
        self._generation += 1
        self._busy = False
        self.bus.publish(WatcherStopped())
        self.bus.close()
        logger.debug("Watcher gestoppt")

    # ─── Takt ──────────────────────────────────────────────────────────────────

    def _on_timeout(self):
        if not self._running:
            return False
        self._tick()
        return True

    def _tick(self):
        if self._busy:
            self.skipped_ticks += 1
            logger.debug("Vorherige Abfrage läuft noch, Takt übersprungen")
            return False
        self._busy = True
        generation = self._generation
        self.scheduler.run_in_background(
            self._collect,
            lambda results, error: self._deliver(generation, results, error),
        )
        return True

    def _collect(self):
        return build_snapshot(self.enumerator, self.matcher, self.catalog)

    def _deliver(self, generation, results, error):
        if generation != self._generation or not self._running:
            logger.debug("Veraltetes Abfrageergebnis verworfen")
            return
        self._busy = False
        if error is not None:
            logger.warning("Fensterabfrage fehlgeschlagen: %s", error)
            return
        self._apply(results)

    def _apply(self, results) -> bool:
        key = snapshot_key(results)
        if key == self._key:
            return False
        self._key = key
        self._snapshot = tuple(results)
        self.bus.publish(WindowsChanged(self._snapshot))
        return True

    def poll_now(self):
        """
        Führt einen Zyklus synchron aus und veröffentlicht bei Änderung.
        Rückgabe: die aktuelle Fensterliste.
        """
        results = self._collect()
        self._apply(results)
        return tuple(results)

    # ─── Befehle ───────────────────────────────────────────────────────────────

    def activate_window(self, window_id) -> bool:
        return self.enumerator.activate_window(window_id)

    def close_window(self, window_id) -> bool:
        return self.enumerator.close_window(window_id)

    def running_applications(self):
        """
        Laufende Anwendungen laut Prozessliste, auch ohne X11-Fenster.
        """
        return detect_running(self.catalog)
