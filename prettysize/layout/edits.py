# layout/edits.py
"""Пользовательские правки отчёта.

Файл правок: JSON-массив, правки применяются строго по порядку::

    [
        {"GroupRegions": {"source_region": "BOOT", "dest_region": "FLASH",
                          "synthetic_section_name": "bootloader"}},
        {"Ignore": {"region_name": "RAM", "section_name": ".heap"}}
    ]

Правка, которая ссылается на несуществующий регион или секцию, молча
пропускается: apply_edit() возвращает False и ничего не бросает.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Iterable, Union

from ..errors import InputNotFoundError, ParseFailureError
from .model import Layout, SectionRecord, find_region


@dataclass(frozen=True)
class GroupRegions:
    """Свернуть регион source_region в dest_region как псевдо-секцию."""
    source_region: str
    dest_region: str
    synthetic_section_name: str


@dataclass(frozen=True)
class Ignore:
    """Скрыть секцию section_name из региона region_name."""
    region_name: str
    section_name: str


SectionEdit = Union[GroupRegions, Ignore]

_KINDS = {cls.__name__: cls for cls in (GroupRegions, Ignore)}


def apply_edit(layout: Layout, edit: SectionEdit) -> bool:
    """Применить одну правку к layout (на месте). True, если применена; False, если no-op."""
    if isinstance(edit, GroupRegions):
        source = find_region(layout, edit.source_region)
        dest = find_region(layout, edit.dest_region)
        if source is None or dest is None or source is dest:
            return False
        layout.remove(source)
        dest.sections.insert(0, SectionRecord(edit.synthetic_section_name, source.capacity))
        dest.capacity += source.capacity
        return True

    if isinstance(edit, Ignore):
        region = find_region(layout, edit.region_name)
        if region is None:
            return False
        section = region.find_section(edit.section_name)
        if section is None:
            return False
        region.sections.remove(section)
        return True

    raise TypeError(f"Неизвестная правка: {edit!r}")


def apply_edits(layout: Layout, edits: Iterable[SectionEdit]) -> list[SectionEdit]:
    """Применить правки по порядку, вернуть пропущенные."""
    return [edit for edit in edits if not apply_edit(layout, edit)]


def parse_edits(data, source: str = "файл правок") -> list[SectionEdit]:
    if not isinstance(data, list):
        raise ParseFailureError(source, "ожидался JSON-массив правок")
    edits = []
    for i, item in enumerate(data):
        if not isinstance(item, dict) or len(item) != 1:
            raise ParseFailureError(source, f"правка #{i}: ожидался объект с одним ключом")
        (kind, args), = item.items()
        cls = _KINDS.get(kind)
        if cls is None:
            raise ParseFailureError(source, f"правка #{i}: неизвестный тип {kind!r}")
        expected = {f.name for f in fields(cls)}
        if not isinstance(args, dict) or set(args) != expected:
            raise ParseFailureError(source, f"правка #{i}: для {kind} нужны поля {sorted(expected)}")
        if not all(isinstance(v, str) for v in args.values()):
            raise ParseFailureError(source, f"правка #{i}: значения должны быть строками")
        edits.append(cls(**args))
    return edits


def load_edits(path: Path) -> list[SectionEdit]:
    path = Path(path)
    if not path.exists():
        raise InputNotFoundError(path, "Файл правок")
    source = f"файл правок {path}"
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ParseFailureError(source, str(e)) from e
    return parse_edits(data, source)
