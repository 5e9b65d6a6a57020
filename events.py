"""Typisierter Event-Kanal zwischen Engine und Oberfläche.

Produzenten veröffentlichen Events, beliebig viele Abonnenten erhalten sie
in der Reihenfolge ihrer Anmeldung.
"""
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Tuple

from errors import ChannelClosed
from models import MatchResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowsChanged:
    """Neue Fensterliste, nur bei tatsächlicher Änderung."""

    results: Tuple[MatchResult, ...]


@dataclass(frozen=True)
class WatcherStopped:
    pass


class Subscription:
    def __init__(self, bus, event_type, callback):
        self._bus = bus
        self.event_type = event_type
        self.callback = callback

    def cancel(self):
        self._bus.unsubscribe(self)


class EventBus:
    """
    Thread-sicherer Publish/Subscribe-Kanal.
    """

    def __init__(self):
        self._subscriptions = []
        self._closed = False
        self._lock = RLock()

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, event_type, callback) -> Subscription:
        with self._lock:
            if self._closed:
                raise ChannelClosed("Event-Kanal ist geschlossen")
            subscription = Subscription(self, event_type, callback)
            self._subscriptions.append(subscription)
            return subscription

    def unsubscribe(self, subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, event) -> int:
        """
        Verteilt ein Event an alle passenden Abonnenten.
        Rückgabe: Anzahl der erreichten Abonnenten (0 nach close()).
        """
        with self._lock:
            if self._closed:
                return 0
            targets = [s for s in self._subscriptions if isinstance(event, s.event_type)]

        delivered = 0
        for subscription in targets:
            try:
                subscription.callback(event)
            except Exception:
                # Ein fehlerhafter Abonnent darf die anderen nicht blockieren
                logger.exception("Abonnent für %s fehlgeschlagen", type(event).__name__)
                continue
            delivered += 1
        return delivered

    def close(self):
        with self._lock:
            self._closed = True
            self._subscriptions.clear()
