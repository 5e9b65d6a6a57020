#!/usr/bin/env python3
from window_manager import WindowEnumerator
from window_matcher import WindowMatcher


def build_snapshot(enumerator, matcher, catalog):
    """
    Erstellt die Fensterliste für die Taskbar:
    jedes offene Fenster mit zugeordneter Anwendung (oder None) und Icon.
    Nicht zugeordnete Fenster bleiben in der Liste.
    """
    windows = enumerator.enumerate()
    return tuple(matcher.match(w, catalog) for w in windows)


def snapshot_key(results):
    """
    Vergleichsschlüssel für die Änderungserkennung: (ID, Fokus, Titel) je Fenster.
    """
    return frozenset(
        (r.window.window_id, r.window.is_focused, r.window.title)
        for r in results
    )


def group_by_application(results):
    """
    Fasst Fenster derselben Anwendung zusammen.
    Rückgabe: Liste von (Anwendung oder None, [MatchResult, ...]) in Reihenfolge des ersten Auftretens.
    Nicht zugeordnete Fenster bilden jeweils eine eigene Gruppe.
    """
    groups = []
    index = {}
    for result in results:
        app = result.application
        if app is None:
            groups.append((None, [result]))
            continue
        if app.name not in index:
            index[app.name] = len(groups)
            groups.append((app, []))
        groups[index[app.name]][1].append(result)
    return groups


if __name__ == '__main__':
    from pprint import pprint
    from desktop_entries import ApplicationCatalog
    from icon_resolver import IconResolver

    data = build_snapshot(WindowEnumerator(), WindowMatcher(IconResolver()), ApplicationCatalog())
    print("🔽 Taskbar Struktur:")
    pprint([r.to_dict() for r in data])
