import os
import re
import shlex
from dataclasses import dataclass, field
from typing import Optional

# Platzhalter aus Exec-Zeilen (%U, %f, %i, ...), "%%" steht für ein echtes Prozentzeichen
_FIELD_CODE = re.compile(r"%%|%[a-zA-Z]")


def strip_field_codes(exec_line: str) -> str:
    """
    Entfernt die Platzhalter einer Exec-Zeile und normalisiert Leerzeichen.
    "firefox %u" -> "firefox"
    """
    cleaned = _FIELD_CODE.sub(lambda m: "%" if m.group(0) == "%%" else "", exec_line)
    return " ".join(cleaned.split())


def executable_name(command: Optional[str]) -> str:
    """
    Basisname des ausführbaren Programms einer Kommandozeile.
    Führende "env" und VAR=wert Tokens werden übersprungen.
    "/usr/bin/firefox %u" -> "firefox", "env GDK_BACKEND=x11 code" -> "code"
    """
    if not command:
        return ""
    cleaned = strip_field_codes(command)
    try:
        tokens = shlex.split(cleaned)
    except ValueError:
        tokens = cleaned.split()
    for token in tokens:
        if token == "env" or ("=" in token and not token.startswith("/")):
            continue
        return os.path.basename(token.rstrip("/"))
    return ""


@dataclass(frozen=True)
class ApplicationDescriptor:
    """Startbare Anwendung aus einer .desktop-Datei."""

    name: str
    launch_command: Optional[str] = None
    icon_hint: Optional[str] = None
    icon_path: Optional[str] = None
    startup_wm_class: Optional[str] = None
    desktop_file: Optional[str] = field(default=None, compare=False)

    @property
    def executable(self) -> str:
        return executable_name(self.launch_command)

    def to_dict(self):
        return {
            "name": self.name,
            "exec": self.launch_command,
            "icon": self.icon_hint,
            "icon_path": self.icon_path,
            "startup_wm_class": self.startup_wm_class,
        }


@dataclass(frozen=True)
class WindowRecord:
    """Momentaufnahme eines offenen Fensters (pro Abfragezyklus neu erzeugt)."""

    window_id: str
    title: str
    window_class: Optional[str] = None
    window_instance: Optional[str] = None
    workspace_index: int = 0
    is_focused: bool = False

    def to_dict(self):
        return {
            "id": self.window_id,
            "title": self.title,
            "class": self.window_class,
            "instance": self.window_instance,
            "workspace": self.workspace_index,
            "focused": self.is_focused,
        }


@dataclass(frozen=True)
class MatchResult:
    window: WindowRecord
    application: Optional[ApplicationDescriptor] = None
    resolved_icon_path: Optional[str] = None
    is_svg: bool = False

    def to_dict(self):
        return {
            "window": self.window.to_dict(),
            "application": self.application.to_dict() if self.application else None,
            "icon_path": self.resolved_icon_path,
            "is_svg": self.is_svg,
        }
