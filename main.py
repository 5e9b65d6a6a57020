#!/usr/bin/env python3
import json
import logging
import sys

import click

import config_loader
from errors import ConfigError
from icon_resolver import IconResolver
from taskbar_data import group_by_application
from window_watcher import WindowWatcher

logger = logging.getLogger("karpdock")


def _dump(data):
    click.echo(json.dumps(data, ensure_ascii=False))


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Pfad zur JSON-Konfiguration")
@click.option("-v", "--verbose", is_flag=True, help="Debug-Ausgaben aktivieren")
@click.pass_context
def cli(ctx, config_path, verbose):
    """Fensterliste und Anwendungszuordnung für das Dock."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # Konfigurationsdatei laden
    try:
        ctx.obj = config_loader.load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))


@cli.command("list")
@click.option("--grouped", is_flag=True, help="Fenster nach Anwendung gruppieren")
@click.pass_obj
def list_windows(cfg, grouped):
    """Einmalige Abfrage aller offenen Fenster."""
    watcher = WindowWatcher.from_config(cfg)
    results = watcher.poll_now()
    if grouped:
        _dump([
            {
                "application": app.to_dict() if app else None,
                "windows": [r.window.to_dict() for r in members],
            }
            for app, members in group_by_application(results)
        ])
    else:
        _dump([r.to_dict() for r in results])


@cli.command()
@click.pass_obj
def watch(cfg):
    """Fensterliste fortlaufend ausgeben (eine JSON-Zeile pro Änderung)."""
    from mainloop import new_main_loop

    watcher = WindowWatcher.from_config(cfg)
    watcher.subscribe(lambda event: _dump([r.to_dict() for r in event.results]))
    loop = new_main_loop()
    watcher.start()
    try:
        loop.run()
    except KeyboardInterrupt:
        logger.info("Beendet")
    finally:
        watcher.stop()


@cli.command()
@click.pass_obj
def apps(cfg):
    """Anwendungskatalog ausgeben."""
    watcher = WindowWatcher.from_config(cfg)
    _dump([a.to_dict() for a in watcher.catalog])


@cli.command()
@click.pass_obj
def running(cfg):
    """Laufende Anwendungen laut Prozessliste."""
    watcher = WindowWatcher.from_config(cfg)
    _dump([a.name for a in watcher.running_applications()])


@cli.command()
@click.argument("window_id")
@click.pass_obj
def activate(cfg, window_id):
    """Fenster fokussieren."""
    if not WindowWatcher.from_config(cfg).activate_window(window_id):
        raise click.ClickException(f"Fenster {window_id} konnte nicht fokussiert werden")


@cli.command()
@click.argument("window_id")
@click.pass_obj
def close(cfg, window_id):
    """Fenster schließen."""
    if not WindowWatcher.from_config(cfg).close_window(window_id):
        raise click.ClickException(f"Fenster {window_id} konnte nicht geschlossen werden")


@cli.command()
@click.argument("hint")
@click.pass_obj
def icon(cfg, hint):
    """Icon-Namen zu einem Dateipfad auflösen."""
    resolver = IconResolver(fallback_themes=config_loader.get_fallback_themes(cfg))
    path = resolver.resolve(hint)
    if path is None:
        raise click.ClickException(f"Kein Icon für {hint} gefunden")
    click.echo(path)


def main():
    cli()


if __name__ == "__main__":
    main()
