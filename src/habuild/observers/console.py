# src/habuild/observers/console.py
import typer

from .events import BaseEvent

_HIDDEN = ("ts", "run_id", "cluster", "mode")


class ConsoleObserver:
    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        k = event.__class__.__name__
        data = ", ".join(f"{x}={y}" for x, y in d.items() if x not in _HIDDEN)
        typer.echo(f"[{d['ts']}] {k} cluster={d['cluster']} mode={d['mode']} {{{data}}}")
