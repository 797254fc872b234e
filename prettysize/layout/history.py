# layout/history.py
from __future__ import annotations
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from ..errors import HistoryUnreadableError
from .model import Layout, Region, SectionRecord, find_region


@dataclass
class AnnotatedRegion:
    """Регион для вывода: секции вместе с изменением размера относительно прошлой сборки."""
    name: str
    capacity: int
    sections: List[Tuple[SectionRecord, int]] = field(default_factory=list)

    @property
    def used(self) -> int:
        return sum(s.size for s, _ in self.sections)


# ---- Формат файла истории ----
# [{"name": "FLASH", "length": 524288, "sections": [[".text", 130000], ...]}, ...]

def dump_layout(layout: Layout) -> list:
    return [
        {
            "name": r.name,
            "length": r.capacity,
            "sections": [[s.name, s.size] for s in r.sections],
        }
        for r in layout
    ]


def restore_layout(data) -> Layout:
    """Обратное к dump_layout(). Любое несоответствие формату даёт ValueError."""
    if not isinstance(data, list):
        raise ValueError("ожидался список регионов")
    layout = []
    for item in data:
        name, length, sections = item["name"], item["length"], item["sections"]
        if not isinstance(name, str) or not _is_int(length) or not isinstance(sections, list):
            raise ValueError(f"некорректный регион: {item!r}")
        records = []
        for pair in sections:
            section_name, size = pair
            if not isinstance(section_name, str) or not _is_int(size):
                raise ValueError(f"некорректная секция: {pair!r}")
            records.append(SectionRecord(section_name, size))
        layout.append(Region(name, length, records))
    return layout


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def save_history(path: Path, layout: Layout) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(dump_layout(layout)), encoding="utf-8")


def read_history(path: Path) -> Layout | None:
    """None, если истории ещё нет (первая сборка). Битый файл даёт HistoryUnreadableError."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        return restore_layout(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, KeyError, TypeError, RecursionError) as e:
        raise HistoryUnreadableError(f"{path}: {e}") from e


def diff_layout(current: Layout, previous: Layout | None) -> list[AnnotatedRegion]:
    """
    Изменение размера каждой секции относительно прошлой сборки (по имени, внутри
    одноимённого региона). Новая секция считается неизменной (0), а не
    добавленной целиком; исчезнувшие секции не показываются вовсе.
    """
    annotated = []
    for region in current:
        before = find_region(previous, region.name) if previous else None
        sections = []
        for section in region.sections:
            old = before.find_section(section.name) if before is not None else None
            delta = section.size - old.size if old is not None else 0
            sections.append((section, delta))
        annotated.append(AnnotatedRegion(region.name, region.capacity, sections))
    return annotated
