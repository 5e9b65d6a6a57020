"""Icon-Auflösung über die Icon-Theme-Verzeichnisse.

Sucht Icons in fester Reihenfolge: aktives Theme, Fallback-Themes,
Größen (groß nach klein), Kategorien, Dateiendungen. Danach die flachen
pixmaps-Verzeichnisse.
"""
import configparser
import logging
import os

import config

logger = logging.getLogger(__name__)

_DETECT = object()

GNOME_INTERFACE_SCHEMA = "org.gnome.desktop.interface"


def icon_base_dirs(environ=None):
    env = os.environ if environ is None else environ
    home = env.get("HOME") or os.path.expanduser("~")
    data_home = env.get("XDG_DATA_HOME") or os.path.join(home, ".local", "share")
    data_dirs = [d for d in env.get("XDG_DATA_DIRS", "/usr/local/share:/usr/share").split(":") if d]

    dirs = [os.path.join(data_home, "icons"), os.path.join(home, ".icons")]
    dirs += [os.path.join(d, "icons") for d in data_dirs]
    dirs += [
        "/usr/share/icons",
        "/usr/local/share/icons",
        "/var/lib/flatpak/exports/share/icons",
        os.path.join(data_home, "flatpak", "exports", "share", "icons"),
        "/var/lib/snapd/desktop/icons",
    ]
    return list(dict.fromkeys(dirs))


def pixmap_dirs(environ=None):
    env = os.environ if environ is None else environ
    data_dirs = [d for d in env.get("XDG_DATA_DIRS", "/usr/local/share:/usr/share").split(":") if d]
    dirs = ["/usr/share/pixmaps", "/usr/local/share/pixmaps"]
    dirs += [os.path.join(d, "pixmaps") for d in data_dirs]
    return list(dict.fromkeys(dirs))


def _clean_theme_name(value):
    if not value:
        return None
    name = value.strip().strip("'\"").strip()
    if not name or name.lower() == "default":
        return None
    return name


def _theme_from_gsettings():
    try:
        import gi
        gi.require_version("Gio", "2.0")
        from gi.repository import Gio
    except (ImportError, ValueError) as e:
        logger.debug("Gio nicht verfügbar: %s", e)
        return None

    # Gio.Settings bricht den Prozess ab, wenn das Schema fehlt
    source = Gio.SettingsSchemaSource.get_default()
    if source is None or source.lookup(GNOME_INTERFACE_SCHEMA, True) is None:
        return None
    settings = Gio.Settings.new(GNOME_INTERFACE_SCHEMA)
    return _clean_theme_name(settings.get_string("icon-theme"))


def _theme_from_gtk_settings(environ=None):
    env = os.environ if environ is None else environ
    home = env.get("HOME") or os.path.expanduser("~")
    config_home = env.get("XDG_CONFIG_HOME") or os.path.join(home, ".config")
    for gtk in ("gtk-4.0", "gtk-3.0"):
        path = os.path.join(config_home, gtk, "settings.ini")
        if not os.path.exists(path):
            continue
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        try:
            parser.read(path, encoding="utf-8")
        except (OSError, configparser.Error, UnicodeError) as e:
            logger.debug("GTK-Einstellungen %s nicht lesbar: %s", path, e)
            continue
        if parser.has_option("Settings", "gtk-icon-theme-name"):
            theme = _clean_theme_name(parser.get("Settings", "gtk-icon-theme-name"))
            if theme:
                return theme
    return None


def detect_icon_theme(environ=None):
    """
    Ermittelt das aktive Icon-Theme (gsettings, dann GTK settings.ini).
    Rückgabe: Theme-Name oder None. Wirft nie.
    """
    theme = _theme_from_gsettings()
    if theme:
        return theme
    return _theme_from_gtk_settings(environ)


class IconResolver:
    """
    Löst Icon-Namen zu Dateipfaden auf. Treffer und Fehlschläge werden gecacht.
    """

    def __init__(self, theme=_DETECT, fallback_themes=None, base_dirs=None, pixmaps=None, environ=None):
        self._environ = environ
        self._theme = theme
        self._fallback_themes = list(config.FALLBACK_ICON_THEMES if fallback_themes is None else fallback_themes)
        self._base_dirs = icon_base_dirs(environ) if base_dirs is None else list(base_dirs)
        self._pixmaps = pixmap_dirs(environ) if pixmaps is None else list(pixmaps)
        self._cache = {}

    @property
    def active_theme(self):
        if self._theme is _DETECT:
            self._theme = detect_icon_theme(self._environ)
            logger.debug("Aktives Icon-Theme: %s", self._theme)
        return self._theme

    def theme_order(self):
        themes = [self.active_theme] + self._fallback_themes
        return list(dict.fromkeys(t for t in themes if t))

    def resolve(self, hint):
        """
        Rückgabe: aufgelöster Pfad (Symlinks verfolgt) oder None.
        """
        if not hint:
            return None
        if hint in self._cache:
            return self._cache[hint]
        path = self._lookup(hint)
        self._cache[hint] = path
        return path

    def _lookup(self, hint):
        if os.path.isabs(hint):
            return os.path.realpath(hint) if os.path.isfile(hint) else None
        if "/" in hint:
            return None

        for theme in self.theme_order():
            for base in self._base_dirs:
                theme_dir = os.path.join(base, theme)
                if not os.path.isdir(theme_dir):
                    continue
                found = self._search_theme_dir(theme_dir, hint)
                if found:
                    return found

        for directory in self._pixmaps:
            if not os.path.isdir(directory):
                continue
            for candidate in self._candidates(directory, hint):
                if os.path.isfile(candidate):
                    return os.path.realpath(candidate)
        return None

    def _search_theme_dir(self, theme_dir, hint):
        for size in config.ICON_SIZES:
            size_dir = os.path.join(theme_dir, size)
            if not os.path.isdir(size_dir):
                continue
            for category in config.ICON_CATEGORIES:
                directory = os.path.join(size_dir, category)
                if not os.path.isdir(directory):
                    continue
                for candidate in self._candidates(directory, hint):
                    if os.path.isfile(candidate):
                        return os.path.realpath(candidate)
        return None

    @staticmethod
    def _candidates(directory, hint):
        paths = [os.path.join(directory, hint + ext) for ext in config.ICON_EXTENSIONS]
        # Hinweise mit eigener Endung ("firefox.png") auch unverändert versuchen
        paths.append(os.path.join(directory, hint))
        return paths

    def clear_cache(self):
        self._cache.clear()


def is_svg(path) -> bool:
    return bool(path) and path.lower().endswith(".svg")
