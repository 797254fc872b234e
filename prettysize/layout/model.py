# layout/model.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List


@dataclass
class SectionRecord:
    name: str
    size: int


@dataclass
class Region:
    """
    Регион памяти из скрипта компоновщика.
    capacity: объявленная длина, а не измеренная; переполнение допустимо (>100%).
    Порядок sections важен: по нему рисуется полоса и чередуются цвета.
    """
    name: str
    capacity: int
    sections: List[SectionRecord] = field(default_factory=list)

    @property
    def used(self) -> int:
        return sum(s.size for s in self.sections)

    def find_section(self, name: str) -> SectionRecord | None:
        return next((s for s in self.sections if s.name == name), None)


# Отчёт целиком: регионы в порядке объявления
Layout = List[Region]


def find_region(layout: Layout, name: str) -> Region | None:
    return next((r for r in layout if r.name == name), None)
