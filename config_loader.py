import json
import logging
import os

import config
from errors import ConfigError

logger = logging.getLogger(__name__)

# Globale Konfigurationsdaten (Defaults aus config.py, überschrieben durch JSON)
config_data = {}


def default_config_path():
    """
    Standardpfad der Konfigurationsdatei:
    $XDG_CONFIG_HOME/karpdock/config.json bzw. ~/.config/karpdock/config.json
    """
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, "karpdock", "config.json")


def _defaults():
    return {
        "poll_interval_ms": config.POLL_INTERVAL_MS,
        "tool_timeout": config.TOOL_TIMEOUT_SECONDS,
        "dock_window_title": config.DOCK_WINDOW_TITLE,
        "dock_window_class": config.DOCK_WINDOW_CLASS,
        "excluded_classes": list(config.SHELL_WINDOW_CLASSES),
        "excluded_titles": list(config.SHELL_WINDOW_TITLES),
        "fallback_icon_themes": list(config.FALLBACK_ICON_THEMES),
    }


def load_config(path=None):
    """
    Lädt die Konfigurationsdatei (JSON) und legt sie über die Defaults.
    Fehlt die Datei, gelten nur die Defaults. Ist sie kaputt, wird ConfigError geworfen.
    Rückgabe: das zusammengeführte Konfigurations-Dict.
    """
    global config_data
    if path is None:
        path = default_config_path()
    merged = _defaults()
    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                overrides = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Konfigurationsdatei konnte nicht geladen werden: {e}") from e
        if not isinstance(overrides, dict):
            raise ConfigError(f"Konfigurationsdatei {path} enthält kein JSON-Objekt")
        unknown = set(overrides) - set(merged)
        if unknown:
            logger.warning("Unbekannte Konfigurationsschlüssel ignoriert: %s", ", ".join(sorted(unknown)))
        merged.update({k: v for k, v in overrides.items() if k in merged})
    else:
        logger.debug("Keine Konfigurationsdatei unter %s, verwende Defaults", path)
    config_data = merged
    return config_data


def get_config():
    """
    Gibt die geladene Konfiguration zurück. Lädt sie bei Bedarf nach.
    """
    if not config_data:
        load_config()
    return config_data


def get_poll_interval_ms(cfg=None) -> int:
    cfg = cfg or get_config()
    try:
        interval = int(cfg.get("poll_interval_ms", config.POLL_INTERVAL_MS))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"poll_interval_ms ist keine Zahl: {e}") from e
    if interval <= 0:
        raise ConfigError("poll_interval_ms muss positiv sein")
    return interval


def get_tool_timeout(cfg=None) -> float:
    cfg = cfg or get_config()
    try:
        timeout = float(cfg.get("tool_timeout", config.TOOL_TIMEOUT_SECONDS))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"tool_timeout ist keine Zahl: {e}") from e
    if timeout <= 0:
        raise ConfigError("tool_timeout muss positiv sein")
    return timeout


def get_dock_identity(cfg=None):
    """
    Liefert (Titel, Klasse) des eigenen Dock-Fensters.
    """
    cfg = cfg or get_config()
    return cfg.get("dock_window_title", ""), cfg.get("dock_window_class", "")


def get_excluded_classes(cfg=None):
    cfg = cfg or get_config()
    return [c.lower() for c in cfg.get("excluded_classes", []) if c]


def get_excluded_titles(cfg=None):
    cfg = cfg or get_config()
    return [t.lower() for t in cfg.get("excluded_titles", []) if t]


def get_fallback_themes(cfg=None):
    cfg = cfg or get_config()
    return list(cfg.get("fallback_icon_themes", []))
