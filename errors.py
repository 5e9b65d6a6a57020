"""Fehlerklassen der Fenster-Engine.

Keine dieser Ausnahmen ist für den Prozess fatal: sie werden dort
behandelt, wo das jeweilige Werkzeug bzw. die Datei benutzt wird.
"""


class KarpdockError(Exception):
    """Basisklasse aller Engine-Fehler."""


class ToolUnavailable(KarpdockError):
    """Externes Tool fehlt, läuft in einen Timeout oder endet mit Exit-Code != 0."""

    def __init__(self, tool, reason):
        super().__init__(f"{tool}: {reason}")
        self.tool = tool
        self.reason = reason


class ParseAnomaly(KarpdockError):
    """Eine Ausgabezeile hat nicht die erwartete Form."""

    def __init__(self, source, line, reason):
        super().__init__(f"{source}: {reason}: {line!r}")
        self.source = source
        self.line = line
        self.reason = reason


class FileAccessError(KarpdockError):
    """Verzeichnis oder Datei ist nicht lesbar."""

    def __init__(self, path, reason=""):
        super().__init__(f"{path}: {reason}" if reason else str(path))
        self.path = path


class ConfigError(KarpdockError):
    """Konfigurationsdatei vorhanden, aber nicht lesbar oder ungültig."""


class ChannelClosed(KarpdockError):
    """Der Event-Kanal wurde bereits geschlossen."""
