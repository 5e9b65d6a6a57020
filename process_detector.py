"""Erkennung laufender Anwendungen über die Prozessliste.

Native Wayland-Programme haben unter X11 kein sichtbares Fenster und
tauchen daher weder in wmctrl noch in xdotool auf. Über die Prozessnamen
lassen sie sich trotzdem einem Katalogeintrag zuordnen.
"""
import logging
import os

import psutil

from window_matcher import normalize

logger = logging.getLogger(__name__)


def running_executables():
    """
    Rückgabe: Menge normalisierter Programmnamen aller laufenden Prozesse.
    """
    names = set()
    for proc in psutil.process_iter(["name", "cmdline"]):
        try:
            info = proc.info
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
        if info.get("name"):
            names.add(normalize(info["name"]))
        cmdline = info.get("cmdline") or []
        if cmdline and cmdline[0]:
            names.add(normalize(os.path.basename(cmdline[0])))
    names.discard("")
    return names


def detect_running(catalog, executables=None):
    """
    Liefert die Katalogeinträge, deren Programm gerade läuft.
    Bei einem Fehler der Prozessabfrage wird eine leere Liste geliefert.
    """
    if executables is None:
        try:
            executables = running_executables()
        except (psutil.Error, OSError) as e:
            logger.warning("Prozessliste nicht abrufbar: %s", e)
            return []

    running = []
    for entry in catalog:
        executable = entry.executable
        key = normalize(executable)
        if not key:
            continue
        # Prozessnamen werden vom Kernel auf 15 Zeichen gekürzt
        if key in executables or (len(executable) > 15 and normalize(executable[:15]) in executables):
            running.append(entry)
    return running
