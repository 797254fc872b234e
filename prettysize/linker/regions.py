# linker/regions.py
from __future__ import annotations
from dataclasses import dataclass

from ..errors import MissingRegionsError
from ..layout.model import Layout, Region
from .script import LinkerScript


@dataclass(frozen=True)
class PlacementRule:
    section_name: str
    region_name: str | None
    load_region_name: str | None = None


def extract_regions(script: LinkerScript) -> Layout:
    """Пустые регионы (только имя и ёмкость) в порядке объявления в MEMORY."""
    if not script.memory_regions:
        raise MissingRegionsError(script.source)
    return [Region(r.name, r.length) for r in script.memory_regions]


def placement_rules(script: LinkerScript) -> list[PlacementRule]:
    # секции без "> REGION" и без "AT> REGION" (например, /DISCARD/) правил не дают
    return [
        PlacementRule(s.name, s.region, s.load_region)
        for s in script.output_sections
        if s.region or s.load_region
    ]
