# layout/pipeline.py
from __future__ import annotations
from typing import Iterable, Tuple

from ..config import MISC_THRESHOLD_PERCENT
from ..firmware.sections import SectionSample
from ..linker.regions import extract_regions, placement_rules
from ..linker.script import LinkerScript
from .correlate import aggregate_layout, correlate
from .edits import SectionEdit, apply_edits
from .model import Layout


def compute_layout(
    samples: Iterable[SectionSample],
    script: LinkerScript,
    edits: Iterable[SectionEdit] = (),
    threshold: float = MISC_THRESHOLD_PERCENT,
) -> Tuple[Layout, list[SectionEdit]]:
    """
    Регионы -> раскладка секций -> свёртка мелочи -> правки.
    Возвращает готовый отчёт и список правок, которые оказались no-op.
    """
    regions = extract_regions(script)
    layout = correlate(regions, placement_rules(script), samples)
    aggregate_layout(layout, threshold)
    skipped = apply_edits(layout, edits)
    return layout, skipped
