# layout/correlate.py
from __future__ import annotations
from typing import Iterable

from ..config import MISC_SECTION_NAME, MISC_THRESHOLD_PERCENT
from ..errors import ZeroCapacityError
from ..firmware.sections import SectionSample
from ..linker.regions import PlacementRule
from .model import Layout, Region, SectionRecord


def correlate(regions: Layout, rules: Iterable[PlacementRule], samples: Iterable[SectionSample]) -> Layout:
    """
    Разложить секции ELF по регионам.

    Секция попадает в регион, если в правилах размещения он указан как регион
    исполнения (VMA) или как регион загрузки (LMA). Поэтому .data обычно
    оказывается и во FLASH, и в RAM: дубли между регионами не убираются.
    Секции без правила и секции нулевого размера отбрасываются.
    """
    rules = list(rules)
    samples = list(samples)
    layout = []
    for region in regions:
        names = {
            r.section_name for r in rules
            if r.region_name == region.name or r.load_region_name == region.name
        }
        sections = [SectionRecord(s.name, s.size) for s in samples if s.size and s.name in names]
        layout.append(Region(region.name, region.capacity, sections))
    return layout


def aggregate_insignificant(region: Region, threshold: float = MISC_THRESHOLD_PERCENT) -> None:
    """Секции меньше threshold% ёмкости сворачиваются в одну запись "miscellaneous" в конце."""
    if region.capacity == 0 and region.sections:
        raise ZeroCapacityError(region.name)

    kept = []
    misc = 0
    for section in region.sections:
        if 100 * section.size / region.capacity < threshold:
            misc += section.size
        else:
            kept.append(section)
    if misc:
        kept.append(SectionRecord(MISC_SECTION_NAME, misc))
    region.sections[:] = kept


def aggregate_layout(layout: Layout, threshold: float = MISC_THRESHOLD_PERCENT) -> None:
    for region in layout:
        aggregate_insignificant(region, threshold)
