# display/report.py
"""
Вывод отчёта в терминал.

        FLASH used:    170.82 KiB  /  512.00 KiB   (33%)
    ▓▓▓▓▓▓▓▓▓▓▓▓▓▓▓▓░░░░░░░░░░░░░░░░░░░░░░░░░░░░░░░░░░
    .text:             124.68 KiB     +24          (24%)

    |<-- TITLE -->|<------- SIZE INFO ------->|<USAGE>|
         18                    25                 7
"""

from __future__ import annotations

import math
from typing import Iterable, List

from rich import get_console
from rich.console import Console
from rich.text import Text

from ..config import BAR_CELLS
from ..layout.history import AnnotatedRegion

TITLE_WIDTH = 18
USAGE_WIDTH = 7
SINGLE_SIZE_WIDTH = 10
TITLE_SUFFIX = ": "
SIZE_INFO_WIDTH = 2 * SINGLE_SIZE_WIDTH + 5

PURPLE = "rgb(141,128,255)"
PINK = "rgb(255,128,221)"
MINT = "rgb(127,255,191)"
GROW = "yellow"

USED_CELL = "▓"
FREE_CELL = "░"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def sizeof_fmt(num: int) -> str:
    if num < 1024:
        return str(num)
    value = num / 1024.0
    for unit in ["Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi"]:
        if abs(value) < 1024.0:
            return f"{value:.2f} {unit}B"
        value /= 1024.0
    return f"{value:.2f} YiB"


def title_format(title: str) -> str:
    max_len = TITLE_WIDTH - len(TITLE_SUFFIX)
    if len(title) > max_len:
        return title[: max_len - 1] + "…" + TITLE_SUFFIX
    return title + TITLE_SUFFIX


def diff_format(delta: int) -> Text:
    if delta > 0:
        return Text(f"+{sizeof_fmt(delta)}", style=GROW)
    if delta < 0:
        return Text(f"-{sizeof_fmt(-delta)}", style=MINT)
    return Text("")


def _ratio(size: int, capacity: int) -> float:
    return size / capacity if capacity else 0.0


def _percent(size: int, capacity: int) -> str:
    return f"({round_half_up(100 * _ratio(size, capacity))}%)".rjust(USAGE_WIDTH)


def _line(title: str, used: Text, separator: str, total: Text, percent: str, style: str = "") -> Text:
    used = used.copy()
    used.pad_left(max(0, SINGLE_SIZE_WIDTH - len(used)))
    total = total.copy()
    total.pad_right(max(0, SINGLE_SIZE_WIDTH - len(total)))
    return Text.assemble(
        title_format(title).ljust(TITLE_WIDTH),
        used,
        f"  {separator:1}  ",
        total,
        percent,
        style=style,
    )


def region_header(region: AnnotatedRegion) -> Text:
    used = region.used
    return _line(
        f"{region.name} used",
        Text(sizeof_fmt(used), style=PURPLE),
        "/",
        Text(sizeof_fmt(region.capacity)),
        _percent(used, region.capacity),
    )


def usage_bar(region: AnnotatedRegion, cells: int = BAR_CELLS) -> Text:
    """Каждая секция получает round(size / capacity * cells) клеток, остаток: свободное место."""
    bar = Text()
    used_cells = 0
    for i, (section, _) in enumerate(region.sections):
        n = round_half_up(_ratio(section.size, region.capacity) * cells)
        bar.append(USED_CELL * n, style=PINK if i % 2 == 0 else PURPLE)
        used_cells += n
    bar.append(FREE_CELL * max(0, cells - used_cells))
    return bar


def section_lines(region: AnnotatedRegion) -> List[Text]:
    lines = []
    for i, (section, delta) in enumerate(region.sections):
        lines.append(_line(
            section.name,
            Text(sizeof_fmt(section.size)),
            "",
            diff_format(delta),
            _percent(section.size, region.capacity),
            style=PINK if i % 2 == 0 else PURPLE,
        ))
    return lines


def render_region(region: AnnotatedRegion, cells: int = BAR_CELLS) -> List[Text]:
    return [region_header(region), usage_bar(region, cells), *section_lines(region), Text("")]


def print_report(regions: Iterable[AnnotatedRegion], console: Console | None = None, cells: int = BAR_CELLS):
    console = console or get_console()
    for region in regions:
        for line in render_region(region, cells):
            console.print(line)
