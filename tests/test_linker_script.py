from __future__ import annotations

import pytest

from prettysize.errors import InputNotFoundError, MissingRegionsError, ParseFailureError
from prettysize.linker.regions import PlacementRule, extract_regions, placement_rules
from prettysize.linker.script import (
    MemoryRegion,
    OutputSection,
    literal_value,
    parse_linker_script,
    parse_linker_script_text,
)


def test_memory_regions(ld_script):
    script = parse_linker_script(ld_script)
    assert script.memory_regions == [
        MemoryRegion("BOOT", 0x08000000, 8 * 1024, "rx"),
        MemoryRegion("FLASH", 0x08002000, 512 * 1024, "rx"),
        MemoryRegion("RAM", 0x20000000, 128 * 1024, "xrw"),
    ]


def test_output_sections(ld_script):
    script = parse_linker_script(ld_script)
    by_name = {s.name: s for s in script.output_sections}
    assert by_name[".text"] == OutputSection(".text", "FLASH", None)
    assert by_name[".data"] == OutputSection(".data", "RAM", "FLASH")
    assert by_name[".bss"] == OutputSection(".bss", "RAM", None)
    assert by_name["/DISCARD/"] == OutputSection("/DISCARD/", None, None)
    assert [s.name for s in script.output_sections][:3] == [".isr_vector", ".text", ".rodata"]


def test_placement_rules_skip_unplaced_sections(ld_script):
    rules = placement_rules(parse_linker_script(ld_script))
    assert PlacementRule(".data", "RAM", "FLASH") in rules
    assert all(r.section_name not in ("/DISCARD/", ".ARM.attributes") for r in rules)


def test_extract_regions_in_declaration_order(ld_script):
    regions = extract_regions(parse_linker_script(ld_script))
    assert [(r.name, r.capacity, r.sections) for r in regions] == [
        ("BOOT", 8192, []),
        ("FLASH", 524288, []),
        ("RAM", 131072, []),
    ]


def test_length_expressions_and_symbols():
    script = parse_linker_script_text("""
        __flash_size = 256K;
        MEMORY
        {
          FLASH (rx) : org = 0x0, len = __flash_size - 16K
          CONFIG (r) : ORIGIN = ORIGIN(FLASH) + LENGTH(FLASH), LENGTH = (2 * 0x1000) / 2
          RAM        : o = 0x20000000, l = 1M
        }
    """)
    assert [(r.name, r.origin, r.length) for r in script.memory_regions] == [
        ("FLASH", 0, 240 * 1024),
        ("CONFIG", 240 * 1024, 0x1000),
        ("RAM", 0x20000000, 1024 * 1024),
    ]


def test_literal_value():
    assert literal_value("0x8000") == 0x8000
    assert literal_value("512K") == 524288
    assert literal_value("2M") == 2 * 1024 * 1024
    assert literal_value("010") == 8
    assert literal_value("0") == 0


def test_unknown_region_in_expression():
    with pytest.raises(ParseFailureError):
        parse_linker_script_text("MEMORY { RAM : ORIGIN = ORIGIN(FLASH), LENGTH = 1K }")


def test_negative_region_length():
    with pytest.raises(ParseFailureError) as exc:
        parse_linker_script_text("MEMORY { RAM : ORIGIN = 0, LENGTH = 0x10 - 0x20 }")
    assert "RAM" in str(exc.value)


def test_missing_memory_block():
    script = parse_linker_script_text("SECTIONS { .text : { *(.text) } }")
    assert script.memory_regions == []
    with pytest.raises(MissingRegionsError):
        extract_regions(script)


def test_malformed_script(tmp_path):
    path = tmp_path / "broken.ld"
    path.write_text("MEMORY { FLASH : ORIGIN = , }", encoding="utf-8")
    with pytest.raises(ParseFailureError) as exc:
        parse_linker_script(path)
    assert "broken.ld" in str(exc.value)


def test_missing_script(tmp_path):
    with pytest.raises(InputNotFoundError) as exc:
        parse_linker_script(tmp_path / "nope.ld")
    assert exc.value.path == (tmp_path / "nope.ld").resolve()


def test_include_is_followed(tmp_path):
    (tmp_path / "memory.ld").write_text(
        "MEMORY { FLASH (rx) : ORIGIN = 0x0, LENGTH = 64K }\n", encoding="utf-8"
    )
    (tmp_path / "sections.ld").write_text(".text : { *(.text*) } > FLASH\n", encoding="utf-8")
    main = tmp_path / "main.ld"
    main.write_text("INCLUDE memory.ld\nSECTIONS\n{\n  INCLUDE sections.ld\n}\n", encoding="utf-8")

    script = parse_linker_script(main)
    assert [r.name for r in script.memory_regions] == ["FLASH"]
    assert script.output_sections == [OutputSection(".text", "FLASH", None)]


def test_missing_include(tmp_path):
    main = tmp_path / "main.ld"
    main.write_text("INCLUDE absent.ld\n", encoding="utf-8")
    with pytest.raises(InputNotFoundError):
        parse_linker_script(main)
