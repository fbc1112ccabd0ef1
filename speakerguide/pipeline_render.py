from __future__ import annotations

import json
import re
import textwrap
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .models import Deck, Energy, SlideGuide

ENERGY_STYLES = {
    Energy.HIGH: "bold red",
    Energy.MEDIUM: "yellow",
    Energy.LOW: "cyan",
}
NEUTRAL_STYLE = "dim"


def energy_style(guide: SlideGuide) -> str:
    """Rich style for a guide's energy cue; unknown values get the neutral style."""
    return ENERGY_STYLES.get(guide.speaker_reminder.energy_level, NEUTRAL_STYLE)


class Renderer:
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    @staticmethod
    def slugify_filename(s: str, max_len: int = 80) -> str:
        """Slugify filename.

        Args:
            s (str):
            max_len (int):

        Returns:
            str:
        """
        s = s.strip()
        s = re.sub(r"[^a-zA-Z0-9]+", "_", s)
        s = s.strip("_")
        if not s:
            return "presentation"
        return s[:max_len]

    def _guide_panel(self, guide: SlideGuide, total: int) -> Panel:
        table = Table.grid(padding=(0, 1))
        table.add_column(style="bold", no_wrap=True)
        table.add_column()
        points = "\n".join(f"{i}. {escape(p)}" for i, p in enumerate(guide.key_talking_points, 1))
        table.add_row("Talking points", points)
        table.add_row("Emphasize", escape(guide.emphasis_topic))
        if guide.keywords:
            table.add_row("Keywords", escape(", ".join(guide.keywords)))
        if guide.stats:
            table.add_row("Stats", escape("\n".join(guide.stats)))
        table.add_row("Transition", escape(guide.transition_statement))
        reminder = guide.speaker_reminder
        energy = escape(reminder.energy or "-")
        timing = escape(reminder.timing or "-")
        table.add_row("Timing", f"{timing}  [{energy_style(guide)}]energy: {energy}[/]")
        return Panel(table, title=escape(f"Slide {guide.slide_number}/{total}: {guide.title}"), expand=True)

    def print_deck(self, deck: Deck) -> None:
        self.console.print(
            Panel(f"{deck.slide_count} slides", title=escape(f"DECK: {deck.title}"), border_style="cyan", expand=False)
        )
        for guide in deck.guides:
            self.console.print(self._guide_panel(guide, deck.slide_count))

    @staticmethod
    def teleprompter_text(deck: Deck, width: int = 80) -> str:
        """Plain-text rehearsal script, one block per slide."""
        blocks = []
        for g in deck.guides:
            lines = [f"[{g.slide_number}/{deck.slide_count}] {g.title}".upper()]
            cue = " / ".join(x for x in (g.speaker_reminder.timing, g.speaker_reminder.energy) if x)
            if cue:
                lines.append(f"({cue})")
            for p in g.key_talking_points:
                lines.append(textwrap.fill(p, width=width, initial_indent="  * ", subsequent_indent="    "))
            lines.append(textwrap.fill(f"EMPHASIZE: {g.emphasis_topic}", width=width))
            lines.append(textwrap.fill(f"NEXT: {g.transition_statement}", width=width))
            blocks.append("\n".join(lines))
        return ("\n\n" + "-" * min(width, 40) + "\n\n").join(blocks) + "\n"

    def write_json(self, deck: Deck, out_dir: Path) -> Path:
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / f"{self.slugify_filename(deck.title)}.guides.json"
        with path.open("w", encoding="utf-8") as f:
            json.dump(deck.to_wire(), f, indent=2, ensure_ascii=False)
        return path
