"""Fensterabfrage über wmctrl, xdotool und xprop.

Die Ausgabe dieser Tools unterscheidet sich je nach Version und Plattform,
deshalb wird jede Zeile einzeln und tolerant geparst. Eine kaputte Zeile
wird übersprungen, ein fehlendes Tool führt zur nächsten Stufe.
"""
import logging
import re
import subprocess
from dataclasses import replace

import config
from errors import ParseAnomaly, ToolUnavailable
from models import WindowRecord

logger = logging.getLogger(__name__)

_XPROP_STRING = re.compile(r'=\s*"((?:[^"\\]|\\.)*)"')
_HEX_ID = re.compile(r"0x[0-9a-fA-F]+")


def run_tool(args, timeout=config.TOOL_TIMEOUT_SECONDS):
    """
    Führt ein externes Tool mit Timeout aus.
    Rückgabe: stdout als String. Wirft ToolUnavailable bei jedem Fehler.
    """
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=True,
        )
    except FileNotFoundError as e:
        raise ToolUnavailable(args[0], "nicht installiert") from e
    except subprocess.TimeoutExpired as e:
        raise ToolUnavailable(args[0], f"Timeout nach {timeout}s") from e
    except subprocess.CalledProcessError as e:
        raise ToolUnavailable(args[0], f"Exit-Code {e.returncode}") from e
    except OSError as e:
        raise ToolUnavailable(args[0], str(e)) from e
    return result.stdout


def normalize_window_id(raw) -> str:
    """
    Bringt eine Fenster-ID (hex "0x..." oder dezimal) in die Form 0x%08x.
    Wirft ValueError bei ungültigen IDs.
    """
    value = str(raw).strip().lower()
    if value.startswith("0x"):
        number = int(value, 16)
    else:
        number = int(value, 10)
    if number < 0:
        raise ValueError(f"negative Fenster-ID: {raw}")
    return f"0x{number:08x}"


def split_wm_class_field(field):
    """
    Zerlegt das "name.Klasse" Feld aus wmctrl -lx.
    Rückgabe: (instance, class), jeweils ggf. None.
    """
    if not field or field == "N/A":
        return None, None
    segments = field.split(".")
    if len(segments) == 1:
        return None, field
    if len(segments) % 2 == 0:
        half = len(segments) // 2
        left, right = ".".join(segments[:half]), ".".join(segments[half:])
        if left.lower() == right.lower():
            return left, right
    instance, _, cls = field.partition(".")
    return instance or None, cls or None


def parse_wmctrl_line(line, with_class=True) -> WindowRecord:
    """
    Parst eine Zeile aus "wmctrl -lx" (ID DESK NAME.KLASSE HOST TITEL...)
    bzw. "wmctrl -l" (ID DESK HOST TITEL...).
    Der Titel ist alles nach den festen Feldern. Fehlt er, wird auf
    Klasse, Instanz oder ID ausgewichen.
    """
    source = "wmctrl -lx" if with_class else "wmctrl -l"
    fixed = 4 if with_class else 3
    parts = line.strip().split(None, fixed)
    if len(parts) < 2:
        raise ParseAnomaly(source, line, "zu wenige Felder")

    try:
        window_id = normalize_window_id(parts[0]) if parts[0].lower().startswith("0x") else None
    except ValueError:
        window_id = None
    if window_id is None:
        raise ParseAnomaly(source, line, "keine gültige Fenster-ID")
    try:
        workspace = int(parts[1])
    except ValueError:
        raise ParseAnomaly(source, line, "Desktop-Feld ist keine Zahl") from None

    instance = cls = None
    if with_class and len(parts) > 2:
        instance, cls = split_wm_class_field(parts[2])

    title = parts[fixed].strip() if len(parts) > fixed else ""
    if not title:
        title = cls or instance or window_id

    return WindowRecord(
        window_id=window_id,
        title=title,
        window_class=cls,
        window_instance=instance,
        workspace_index=workspace,
    )


def parse_xprop_string(output):
    """
    Liest den Wert einer String-Eigenschaft aus der xprop-Ausgabe, z.B.
    _NET_WM_NAME(UTF8_STRING) = "Titel". Rückgabe: String oder None.
    """
    if not output:
        return None
    match = _XPROP_STRING.search(output)
    if not match:
        return None
    return re.sub(r"\\(.)", r"\1", match.group(1))


def parse_xprop_wm_class(output):
    """
    WM_CLASS(STRING) = "instance", "Klasse" -> (instance, Klasse)
    """
    if not output:
        return None, None
    values = [re.sub(r"\\(.)", r"\1", v) for v in re.findall(r'"((?:[^"\\]|\\.)*)"', output)]
    if len(values) >= 2:
        return values[0] or None, values[1] or None
    if len(values) == 1:
        return None, values[0] or None
    return None, None


def parse_active_window(output):
    """
    _NET_ACTIVE_WINDOW(WINDOW): window id # 0x3a00007 -> "0x03a00007"
    """
    match = _HEX_ID.search(output or "")
    if not match:
        return None
    window_id = normalize_window_id(match.group(0))
    if window_id == "0x00000000":
        return None
    return window_id


class WindowEnumerator:
    """
    Sammelt die offenen Fenster in mehreren Stufen:
    wmctrl -lx (bzw. wmctrl -l), ergänzt durch xdotool search.
    """

    def __init__(self, run=run_tool, timeout=config.TOOL_TIMEOUT_SECONDS,
                 dock_title=config.DOCK_WINDOW_TITLE, dock_class=config.DOCK_WINDOW_CLASS,
                 excluded_classes=None, excluded_titles=None):
        self._run = run
        self._timeout = timeout
        self._dock_title = (dock_title or "").lower()
        self._dock_class = (dock_class or "").lower()
        self._excluded_classes = {
            c.lower() for c in (config.SHELL_WINDOW_CLASSES if excluded_classes is None else excluded_classes)
        }
        self._excluded_titles = {
            t.lower() for t in (config.SHELL_WINDOW_TITLES if excluded_titles is None else excluded_titles)
        }
        self._last_good = []
        self._degraded = False

    def _call(self, *args):
        return self._run(list(args), self._timeout)

    # ─── Stufe 1: wmctrl ───────────────────────────────────────────────────────

    def _parse_lines(self, output, with_class):
        records = []
        seen = set()
        for line in output.splitlines():
            if not line.strip():
                continue
            try:
                record = parse_wmctrl_line(line, with_class=with_class)
            except ParseAnomaly as e:
                logger.debug("Zeile übersprungen: %s", e)
                continue
            if record.window_id in seen:
                continue
            seen.add(record.window_id)
            records.append(record)
        return records

    def _primary(self):
        return self._parse_lines(self._call("wmctrl", "-lx"), with_class=True)

    def _minimal(self):
        records = self._parse_lines(self._call("wmctrl", "-l"), with_class=False)
        return [self._with_xprop_class(r) for r in records]

    def _with_xprop_class(self, record):
        try:
            instance, cls = parse_xprop_wm_class(self._call("xprop", "-id", record.window_id, "WM_CLASS"))
        except ToolUnavailable as e:
            logger.debug("WM_CLASS für %s nicht ermittelbar: %s", record.window_id, e)
            return record
        if not cls and not instance:
            return record
        return replace(record, window_class=cls, window_instance=instance)

    # ─── Stufe 2: xdotool ──────────────────────────────────────────────────────

    def _search_ids(self):
        try:
            output = self._call("xdotool", "search", "--onlyvisible", "--name", ".")
        except ToolUnavailable as e:
            logger.debug("xdotool search --onlyvisible fehlgeschlagen: %s", e)
            output = self._call("xdotool", "search", "--name", ".")
        ids = []
        for line in output.splitlines():
            if not line.strip():
                continue
            try:
                ids.append(normalize_window_id(line))
            except ValueError:
                logger.debug("Ungültige xdotool-ID übersprungen: %r", line)
        return list(dict.fromkeys(ids))

    def _resolve_title(self, window_id):
        attempts = (
            ("xprop", "-id", window_id, "_NET_WM_NAME"),
            ("xprop", "-id", window_id, "WM_NAME"),
        )
        for args in attempts:
            try:
                title = parse_xprop_string(self._call(*args))
            except ToolUnavailable:
                continue
            if title and title.strip():
                return title.strip()
        try:
            title = self._call("xdotool", "getwindowname", str(int(window_id, 16))).strip()
        except ToolUnavailable:
            return None
        return title or None

    def _resolve_class(self, window_id):
        try:
            instance, cls = parse_xprop_wm_class(self._call("xprop", "-id", window_id, "WM_CLASS"))
            if cls or instance:
                return instance, cls
        except ToolUnavailable:
            pass
        try:
            cls = self._call("xdotool", "getwindowclassname", str(int(window_id, 16))).strip()
        except ToolUnavailable:
            return None, None
        return None, cls or None

    def _resolve_workspace(self, window_id):
        try:
            return int(self._call("xdotool", "get_desktop_for_window", str(int(window_id, 16))).strip())
        except (ToolUnavailable, ValueError):
            return 0

    def _supplementary(self, known):
        try:
            ids = self._search_ids()
        except ToolUnavailable as e:
            logger.debug("xdotool nicht verfügbar: %s", e)
            return []

        records = []
        for window_id in ids:
            if window_id in known:
                continue
            title = self._resolve_title(window_id)
            if not title:
                continue
            instance, cls = self._resolve_class(window_id)
            records.append(WindowRecord(
                window_id=window_id,
                title=title,
                window_class=cls,
                window_instance=instance,
                workspace_index=self._resolve_workspace(window_id),
            ))
        return records

    # ─── Filter und Fokus ──────────────────────────────────────────────────────

    def is_excluded(self, record) -> bool:
        title = record.title.lower()
        classes = {c.lower() for c in (record.window_class, record.window_instance) if c}
        if self._dock_title and self._dock_title in title:
            return True
        if self._dock_class and any(self._dock_class in c for c in classes):
            return True
        if classes & self._excluded_classes:
            return True
        # Titel-Liste nur für Fenster ohne Klasse
        return not classes and title in self._excluded_titles

    def active_window_id(self):
        """
        Rückgabe: normalisierte ID des fokussierten Fensters oder None.
        """
        try:
            return normalize_window_id(self._call("xdotool", "getactivewindow"))
        except (ToolUnavailable, ValueError) as e:
            logger.debug("xdotool getactivewindow fehlgeschlagen: %s", e)
        try:
            return parse_active_window(self._call("xprop", "-root", "_NET_ACTIVE_WINDOW"))
        except (ToolUnavailable, ValueError) as e:
            logger.debug("_NET_ACTIVE_WINDOW nicht lesbar: %s", e)
        return None

    # ─── Öffentliche Schnittstelle ─────────────────────────────────────────────

    @property
    def last_good(self):
        return list(self._last_good)

    def enumerate(self):
        """
        Rückgabe: Liste von WindowRecord mit eindeutigen IDs.
        Schlägt wmctrl komplett fehl, wird die letzte erfolgreiche Liste geliefert.
        """
        try:
            records = self._primary()
        except ToolUnavailable as e:
            logger.debug("wmctrl -lx fehlgeschlagen (%s), versuche wmctrl -l", e)
            try:
                records = self._minimal()
            except ToolUnavailable as e2:
                if not self._degraded:
                    logger.warning("Fensterliste nicht abrufbar (%s), behalte letzten Stand", e2)
                    self._degraded = True
                return list(self._last_good)

        if self._degraded:
            logger.info("Fensterliste wieder verfügbar")
            self._degraded = False

        known = {r.window_id for r in records}
        records.extend(self._supplementary(known))

        active = self.active_window_id()
        result = [
            replace(r, is_focused=(r.window_id == active))
            for r in records
            if not self.is_excluded(r)
        ]
        self._last_good = result
        return list(result)

    def activate_window(self, window_id) -> bool:
        """
        Fokussiert ein Fenster (wmctrl, sonst xdotool).
        Rückgabe: True bei Erfolg.
        """
        return self._window_command(window_id, ("wmctrl", "-i", "-a"), ("xdotool", "windowactivate"))

    def close_window(self, window_id) -> bool:
        """
        Schließt ein Fenster höflich (wmctrl, sonst xdotool).
        Rückgabe: True bei Erfolg.
        """
        return self._window_command(window_id, ("wmctrl", "-i", "-c"), ("xdotool", "windowclose"))

    def _window_command(self, window_id, primary, fallback):
        try:
            normalized = normalize_window_id(window_id)
        except ValueError:
            logger.warning("Ungültige Fenster-ID: %r", window_id)
            return False
        try:
            self._call(*primary, normalized)
            return True
        except ToolUnavailable as e:
            logger.debug("%s fehlgeschlagen: %s", " ".join(primary), e)
        try:
            self._call(*fallback, str(int(normalized, 16)))
            return True
        except ToolUnavailable as e:
            logger.warning("Fensterbefehl für %s fehlgeschlagen: %s", normalized, e)
            return False
