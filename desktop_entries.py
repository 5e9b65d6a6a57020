"""Anwendungskatalog aus den XDG-Anwendungsverzeichnissen.

Liest alle *.desktop-Dateien in fester Reihenfolge (systemweit zuerst,
benutzerlokal zuletzt), so dass spätere Einträge gleichen Namens frühere
überschreiben.
"""
import configparser
import logging
import os

from errors import FileAccessError
from models import ApplicationDescriptor, strip_field_codes

logger = logging.getLogger(__name__)

DESKTOP_SECTION = "Desktop Entry"


def application_dirs(environ=None):
    """
    Liefert die Anwendungsverzeichnisse, niedrigste Priorität zuerst.
    """
    env = os.environ if environ is None else environ
    home = env.get("HOME") or os.path.expanduser("~")
    data_dirs = [d for d in env.get("XDG_DATA_DIRS", "/usr/local/share:/usr/share").split(":") if d]
    data_home = env.get("XDG_DATA_HOME") or os.path.join(home, ".local", "share")

    # XDG_DATA_DIRS ist nach Wichtigkeit sortiert, der wichtigste Eintrag muss zuletzt gelesen werden
    bases = ["/usr/share", "/usr/local/share"] + list(reversed(data_dirs)) + [
        "/var/lib/flatpak/exports/share",
        os.path.join(data_home, "flatpak", "exports", "share"),
        data_home,
    ]

    dirs = []
    for base in bases:
        path = os.path.join(base, "applications")
        if path in dirs:
            # Bereits enthalten: nach hinten schieben, damit die spätere Priorität gilt
            dirs.remove(path)
        dirs.append(path)
    return dirs


def current_desktops(environ=None):
    """
    XDG_CURRENT_DESKTOP als Menge in Großbuchstaben, leer wenn unbekannt.
    """
    env = os.environ if environ is None else environ
    value = env.get("XDG_CURRENT_DESKTOP", "")
    return {d.strip().upper() for d in value.split(":") if d.strip()}


def _split_list(value):
    return {v.strip().upper() for v in value.split(";") if v.strip()}


def _is_true(value):
    return (value or "").strip().lower() == "true"


def _primary_section(lines):
    """
    Rückgabe: nur die Zeilen des [Desktop Entry] Abschnitts samt Kopfzeile.
    Aktionen ([Desktop Action ...]) und andere Abschnitte fallen weg.
    """
    block = []
    inside = False
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("[") and stripped.endswith("]"):
            inside = stripped[1:-1] == DESKTOP_SECTION
        if inside:
            block.append(line if line.endswith("\n") else line + "\n")
    return block


def _read_entry(path):
    parser = configparser.ConfigParser(
        interpolation=None, strict=False, delimiters=("=",), comment_prefixes=("#",)
    )
    # Schlüssel sind case-sensitiv (Name vs. name)
    parser.optionxform = str
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            block = _primary_section(f)
    except OSError as e:
        raise FileAccessError(path, e.strerror or str(e)) from e
    if not block:
        return None
    parser.read_string("".join(block), source=path)
    return parser[DESKTOP_SECTION]


def is_visible(entry, desktops) -> bool:
    """
    Prüft Hidden, NoDisplay, OnlyShowIn und NotShowIn.
    Ein unbekannter aktueller Desktop schließt über OnlyShowIn nichts aus.
    """
    if _is_true(entry.get("Hidden")) or _is_true(entry.get("NoDisplay")):
        return False
    only = entry.get("OnlyShowIn")
    if only and desktops and not (_split_list(only) & desktops):
        return False
    not_show = entry.get("NotShowIn")
    if not_show and desktops and (_split_list(not_show) & desktops):
        return False
    return True


def parse_desktop_file(path, desktops=frozenset()):
    """
    Parst eine .desktop-Datei.
    Rückgabe: ApplicationDescriptor oder None, wenn der Eintrag nicht angezeigt werden soll.
    Wirft FileAccessError bzw. configparser.Error bei kaputten Dateien.
    """
    entry = _read_entry(path)
    if entry is None:
        return None
    if entry.get("Type", "Application").strip() != "Application":
        return None
    if not is_visible(entry, desktops):
        return None

    name = (entry.get("Name") or "").strip()
    command = strip_field_codes(entry.get("Exec") or "")
    if not name or not command:
        return None

    icon = (entry.get("Icon") or "").strip() or None
    icon_path = None
    if icon and os.path.isabs(icon) and os.path.exists(icon):
        icon_path = os.path.realpath(icon)

    return ApplicationDescriptor(
        name=name,
        launch_command=command,
        icon_hint=icon,
        icon_path=icon_path,
        startup_wm_class=(entry.get("StartupWMClass") or "").strip() or None,
        desktop_file=path,
    )


def _desktop_files(directory):
    try:
        names = sorted(os.listdir(directory))
    except FileNotFoundError:
        return []
    except OSError as e:
        raise FileAccessError(directory, e.strerror or str(e)) from e
    return [os.path.join(directory, n) for n in names if n.endswith(".desktop")]


def load_all(dirs=None, environ=None):
    """
    Scannt alle Anwendungsverzeichnisse und liefert die Einträge
    nach Namen sortiert (ohne Beachtung der Groß-/Kleinschreibung).
    Wirft nie: unlesbare Verzeichnisse und Dateien werden übersprungen.
    """
    if dirs is None:
        dirs = application_dirs(environ)
    desktops = current_desktops(environ)

    by_name = {}
    for directory in dirs:
        try:
            files = _desktop_files(directory)
        except FileAccessError as e:
            logger.debug("Verzeichnis übersprungen: %s", e)
            continue
        for path in files:
            try:
                app = parse_desktop_file(path, desktops)
            except (FileAccessError, configparser.Error, UnicodeError) as e:
                logger.debug("Ungültige Desktop-Datei %s: %s", path, e)
                continue
            if app is None:
                continue
            # Letzter gewinnt: benutzerlokale Einträge überschreiben systemweite
            by_name.pop(app.name, None)
            by_name[app.name] = app

    return sorted(by_name.values(), key=lambda a: a.name.lower())


class ApplicationCatalog:
    """
    Lädt den Katalog beim ersten Zugriff und hält ihn danach im Speicher.
    """

    def __init__(self, dirs=None, environ=None, entries=None):
        self._dirs = dirs
        self._environ = environ
        self._entries = list(entries) if entries is not None else None

    @property
    def entries(self):
        if self._entries is None:
            self._entries = load_all(self._dirs, self._environ)
            logger.debug("%d Anwendungen geladen", len(self._entries))
        return self._entries

    def reload(self):
        self._entries = None
        return self.entries

    def find(self, name):
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)
