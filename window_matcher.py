"""Zuordnung von Fenstern zu Anwendungen.

Es gibt keinen gemeinsamen Schlüssel zwischen Fenster und .desktop-Eintrag,
deshalb werden mehrere Heuristiken in fester Reihenfolge probiert:

1. Fensterklasse gegen Programmname / StartupWMClass / Anwendungsname
2. Fenstertitel gegen Anwendungsname
3. Fensterinstanz gegen Programmname

Jede Stufe durchläuft den Katalog in seiner sortierten Reihenfolge, der
erste Treffer gewinnt. Damit ist das Ergebnis für gleiche Eingaben immer gleich.
"""
import logging
import re

import config
from icon_resolver import is_svg
from models import MatchResult

logger = logging.getLogger(__name__)

MIN_CONTAINMENT_LENGTH = 3

_SEPARATORS = re.compile(r"[-_\s]+")
_TITLE_TAIL = re.compile(r"\s+[-–—]\s+.*$")
_TITLE_TOKEN = re.compile(r"[\s\-–—]+")
_TITLE_SEGMENT = re.compile(r"\s+[-–—]\s+")


def normalize(value) -> str:
    """
    Kleinbuchstaben, ohne Bindestriche, Unterstriche und Leerzeichen.
    "Gnome-Terminal" -> "gnometerminal"
    """
    if not value:
        return ""
    return _SEPARATORS.sub("", value.lower())


def _contains_either(a, b) -> bool:
    if not a or not b:
        return False
    shorter = a if len(a) <= len(b) else b
    if len(shorter) < MIN_CONTAINMENT_LENGTH:
        return False
    return a in b or b in a


def strip_chrome_suffix(title):
    lower = title.lower()
    for suffix in config.TITLE_CHROME_SUFFIXES:
        if lower.endswith(suffix.lower()):
            return title[: -len(suffix)].strip()
    return title


class _Candidate:
    """Vorberechnete Vergleichsschlüssel eines Katalogeintrags."""

    __slots__ = ("entry", "exec_key", "wm_class_key", "name_key", "name_lower")

    def __init__(self, entry):
        self.entry = entry
        self.exec_key = normalize(entry.executable)
        self.wm_class_key = normalize(entry.startup_wm_class)
        self.name_key = normalize(entry.name)
        self.name_lower = entry.name.lower()


class WindowMatcher:
    """
    Ordnet WindowRecords Einträgen des Anwendungskatalogs zu.
    """

    def __init__(self, icon_resolver=None):
        self._icon_resolver = icon_resolver
        self._prepared_for = None
        self._candidates = []

    def _prepare(self, catalog):
        entries = list(catalog)
        # Neuberechnung nur, wenn sich der Katalog geändert hat
        if self._prepared_for != entries:
            self._candidates = [_Candidate(e) for e in entries]
            self._prepared_for = entries
        return self._candidates

    def match(self, window, catalog) -> MatchResult:
        """
        Rückgabe: MatchResult, application ist None wenn nichts passt.
        """
        candidates = self._prepare(catalog)
        entry = None
        if window.window_class:
            entry = self.match_by_class(window.window_class, window.window_instance, candidates)
        if entry is None:
            entry = self.match_by_title(window.title, candidates)
        if entry is None and window.window_instance:
            entry = self.match_by_instance(window.window_instance, candidates)

        if entry is None:
            return MatchResult(window=window)

        icon_path = self.icon_for(entry)
        return MatchResult(
            window=window,
            application=entry,
            resolved_icon_path=icon_path,
            is_svg=is_svg(icon_path),
        )

    def match_all(self, windows, catalog):
        return [self.match(w, catalog) for w in windows]

    # ─── Stufe 1: Fensterklasse ────────────────────────────────────────────────

    @staticmethod
    def match_by_class(window_class, window_instance, candidates):
        cls = normalize(window_class)
        inst = normalize(window_instance)

        for key in (cls, inst):
            if not key:
                continue
            for c in candidates:
                if key == c.exec_key or key == c.wm_class_key:
                    return c.entry

        for key in (cls, inst):
            if not key:
                continue
            for c in candidates:
                if _contains_either(key, c.exec_key):
                    return c.entry

        for c in candidates:
            if _contains_either(cls, c.name_key) or _contains_either(inst, c.name_key):
                return c.entry
        return None

    # ─── Stufe 2: Fenstertitel ─────────────────────────────────────────────────

    @staticmethod
    def match_by_title(title, candidates):
        if not title or not title.strip():
            return None
        lower = title.strip().lower()

        for c in candidates:
            if c.name_lower == lower:
                return c.entry

        stripped = strip_chrome_suffix(title.strip())
        for cleaned in (stripped.lower(), _TITLE_TAIL.sub("", stripped).lower().strip()):
            if not cleaned:
                continue
            for c in candidates:
                if c.name_lower == cleaned:
                    return c.entry

        best = None
        for c in candidates:
            if len(c.name_lower) < MIN_CONTAINMENT_LENGTH or c.name_lower not in lower:
                continue
            if best is None or len(c.name_lower) > len(best.name_lower):
                best = c
        if best is not None:
            return best.entry

        tokens = [t for t in _TITLE_TOKEN.split(lower) if t]
        if tokens and len(tokens[0]) > 2:
            first = tokens[0]
            for c in candidates:
                if c.name_lower == first:
                    return c.entry
            for c in candidates:
                if c.name_lower.startswith(first):
                    return c.entry

        segments = _TITLE_SEGMENT.split(lower)
        if len(segments) > 1:
            last = segments[-1].strip()
            for c in candidates:
                if c.name_lower == last:
                    return c.entry
        return None

    # ─── Stufe 3: Fensterinstanz ───────────────────────────────────────────────

    @staticmethod
    def match_by_instance(window_instance, candidates):
        inst = normalize(window_instance)
        if not inst:
            return None
        for c in candidates:
            if inst == c.exec_key:
                return c.entry
        return None

    # ─── Icons ─────────────────────────────────────────────────────────────────

    def icon_for(self, entry):
        """
        Bereits aufgelöster Pfad, sonst Icon-Hinweis, Anwendungsname, Programmname.
        """
        if entry.icon_path:
            return entry.icon_path
        if self._icon_resolver is None:
            return None
        for hint in (entry.icon_hint, entry.name.lower(), entry.executable):
            if not hint:
                continue
            path = self._icon_resolver.resolve(hint)
            if path:
                return path
        logger.debug("Kein Icon für %s gefunden", entry.name)
        return None
