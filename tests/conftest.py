from __future__ import annotations
import struct
from pathlib import Path

import pytest

SHT_STRTAB = 3
SHT_NOBITS = 8
SHF_WRITE_ALLOC = 0x3


def build_elf(sections) -> bytes:
    """
    Минимальный ELF32 (little-endian, ARM): только заголовок и таблица секций.
    sections: список (имя, адрес, размер); все секции NOBITS, данных нет.
    """
    names = [n for n, _, _ in sections] + [".shstrtab"]
    strtab = b"\0"
    offsets = []
    for name in names:
        offsets.append(len(strtab))
        strtab += name.encode() + b"\0"

    strtab_offset = 52
    shoff = strtab_offset + len(strtab)
    shoff += (-shoff) % 4
    shnum = len(names) + 1

    ident = b"\x7fELF" + bytes([1, 1, 1, 0]) + bytes(8)
    header = ident + struct.pack(
        "<HHIIIIIHHHHHH",
        2, 40, 1, 0, 0, shoff, 0, 52, 32, 0, 40, shnum, shnum - 1,
    )
    image = header + strtab + bytes(shoff - strtab_offset - len(strtab))

    image += struct.pack("<10I", *([0] * 10))
    for (name, addr, size), name_off in zip(sections, offsets):
        image += struct.pack("<10I", name_off, SHT_NOBITS, SHF_WRITE_ALLOC, addr, shoff, size, 0, 0, 4, 0)
    image += struct.pack("<10I", offsets[-1], SHT_STRTAB, 0, 0, strtab_offset, len(strtab), 0, 0, 1, 0)
    return image


CORTEX_M_LD = """\
/* STM32-like linker script */
ENTRY(Reset_Handler)

_estack = ORIGIN(RAM) + LENGTH(RAM);
_Min_Heap_Size = 0x200;
_Min_Stack_Size = 0x400;

MEMORY
{
  BOOT (rx)       : ORIGIN = 0x08000000, LENGTH = 8K
  FLASH (rx)      : ORIGIN = 0x08002000, LENGTH = 512K
  RAM (xrw)       : ORIGIN = 0x20000000, LENGTH = 128K
}

SECTIONS
{
  .isr_vector :
  {
    . = ALIGN(4);
    KEEP(*(.isr_vector))
    . = ALIGN(4);
  } >FLASH

  .text :
  {
    . = ALIGN(4);
    *(.text)
    *(.text*)
    KEEP (*(.init))
    _etext = .;
  } >FLASH

  .rodata :
  {
    *(.rodata*)
  } >FLASH

  .preinit_array :
  {
    PROVIDE_HIDDEN (__preinit_array_start = .);
    KEEP (*(.preinit_array*))
    PROVIDE_HIDDEN (__preinit_array_end = .);
  } >FLASH

  _sidata = LOADADDR(.data);

  .data :
  {
    _sdata = .;
    *(.data*)
    _edata = .;
  } >RAM AT> FLASH

  .bss (NOLOAD) :
  {
    _sbss = .;
    *(.bss*)
    *(COMMON)
    _ebss = .;
  } >RAM

  ._user_heap_stack :
  {
    . = ALIGN(8);
    PROVIDE ( end = . );
    . = . + _Min_Heap_Size;
    . = . + _Min_Stack_Size;
  } >RAM

  /DISCARD/ :
  {
    libc.a ( * )
  }

  .ARM.attributes 0 : { *(.ARM.attributes) }
}
"""


@pytest.fixture
def ld_script(tmp_path) -> Path:
    path = tmp_path / "firmware.ld"
    path.write_text(CORTEX_M_LD, encoding="utf-8")
    return path


@pytest.fixture
def make_elf(tmp_path):
    def _make(sections, name="firmware.elf") -> Path:
        path = tmp_path / "build" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_elf(sections))
        return path
    return _make
