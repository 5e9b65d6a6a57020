# config.py

# ─── Polling ────────────────────────────────────────────────────────────────────
POLL_INTERVAL_MS     = 500    # Abstand zwischen zwei Fenster-Abfragen
TOOL_TIMEOUT_SECONDS = 1.5    # Maximale Laufzeit eines externen Tools (wmctrl, xdotool, xprop)
# ────────────────────────────────────────────────────────────────────────────────

# Eigenes Dock-Fenster (wird nie in der Fensterliste angezeigt)
DOCK_WINDOW_TITLE = "karpdock"
DOCK_WINDOW_CLASS = "karpdock"

# Interne Fenster von Desktop-Shell und Compositor (Vergleich in Kleinbuchstaben).
# Die Titel greifen nur bei Fenstern ohne WM_CLASS.
SHELL_WINDOW_CLASSES = [
    "desktop_window",
    "nautilus-desktop",
    "xfdesktop",
    "xfce4-panel",
    "plasmashell",
    "gnome-shell",
    "mate-panel",
    "lxpanel",
    "tint2",
    "polybar",
    "waybar",
    "xfce4-notifyd",
    "dunst",
]

SHELL_WINDOW_TITLES = [
    "desktop",
    "mutter guard window",
    "gnome shell",
    "plasma",
    "xfce4-panel",
    "notification shell",
    "xfwm4 guard window",
]

# ─── Icons ──────────────────────────────────────────────────────────────────────
FALLBACK_ICON_THEMES = [
    "hicolor",
    "Adwaita",
    "gnome",
    "breeze",
    "Papirus",
    "elementary",
    "Humanity",
    "oxygen",
    "Numix",
    "default",
]

# Größte zuerst, "scalable" zuletzt
ICON_SIZES = [
    "512x512", "256x256", "128x128", "96x96", "72x72", "64x64",
    "48x48", "32x32", "24x24", "22x22", "16x16", "scalable",
]

ICON_CATEGORIES = [
    "apps", "actions", "devices", "categories",
    "places", "status", "emblems", "mimetypes",
]

# Vektor zuerst, dann Raster
ICON_EXTENSIONS = [".svg", ".png", ".xpm"]
# ────────────────────────────────────────────────────────────────────────────────

# Branding-Suffixe im Fenstertitel, die vor dem Titel-Abgleich entfernt werden
TITLE_CHROME_SUFFIXES = [
    " - Mozilla Firefox",
    " — Mozilla Firefox",
    " - Firefox",
    " — Firefox",
    " - Google Chrome",
    " - Chromium",
    " - Brave",
    " - Visual Studio Code",
    " - Code - OSS",
    " - Sublime Text",
    " - GNU Emacs",
    " - VIM",
    " - Kate",
    " - gedit",
    " - Text Editor",
    " - LibreOffice Writer",
    " - LibreOffice Calc",
]
