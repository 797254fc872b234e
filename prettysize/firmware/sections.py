# firmware/sections.py
from __future__ import annotations
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from ..errors import ParseFailureError


@dataclass(frozen=True)
class SectionSample:
    name: str
    size: int


# ---- Источник секций (каркас) ----
class SectionSource(Protocol):
    def sections(self) -> list[SectionSample]: ...


# ---- Реализация: собственный разбор ELF (pyelftools) ----
@dataclass
class ElfBackend:
    path: Path

    def sections(self) -> list[SectionSample]:
        """
        Секции, которые реально попадают в память: ненулевой адрес и ненулевой размер.
        Порядок: как в таблице заголовков секций.
        """
        path = Path(self.path)
        try:
            with open(path, "rb") as f:
                elffile = ELFFile(f)
                if elffile.num_sections() == 0 or elffile["e_shstrndx"] in (0, "SHN_UNDEF"):
                    raise ParseFailureError(f"ELF {path}", "нет таблицы строк заголовков секций")
                return [
                    SectionSample(section.name, section["sh_size"])
                    for section in elffile.iter_sections()
                    if section["sh_addr"] != 0 and section["sh_size"] != 0
                ]
        except ELFError as e:
            raise ParseFailureError(f"ELF {path}", str(e)) from e
        except OSError as e:
            raise ParseFailureError(f"ELF {path}", str(e)) from e


# ---- Реализация: внешняя утилита size (как в первых версиях) ----
@dataclass
class SizeProgBackend:
    path: Path
    program: str = "arm-none-eabi-size"

    def sections(self) -> list[SectionSample]:
        try:
            result = subprocess.run(
                [self.program, "-A", "-d", str(self.path)],
                capture_output=True, text=True, check=False,
            )
        except OSError as e:
            raise ParseFailureError(f"ELF {self.path}", f"не удалось запустить {self.program}: {e}") from e
        if result.returncode != 0:
            detail = result.stderr.strip() or f"{self.program} вернул код {result.returncode}"
            raise ParseFailureError(f"ELF {self.path}", detail)
        return parse_size_output(result.stdout)


def parse_size_output(raw: str) -> list[SectionSample]:
    """
    Разобрать вывод `size -A -d`:

        firmware.elf  :
        section            size        addr
        .isr_vector         392   134217728
        ...
        Total             12345

    Две строки заголовка, строка Total и пустые строки пропускаются.
    """
    samples = []
    for line in raw.splitlines()[2:]:
        parts = line.split()
        if len(parts) < 3 or parts[0] == "Total":
            continue
        name, size, addr = parts[0], parts[1], parts[2]
        try:
            size_i, addr_i = int(size), int(addr)
        except ValueError as e:
            raise ParseFailureError("вывод size", f"строка не разобрана: {line!r}") from e
        if addr_i != 0 and size_i != 0:
            samples.append(SectionSample(name, size_i))
    return samples


def read_sections(backend: SectionSource) -> list[SectionSample]:
    return backend.sections()
