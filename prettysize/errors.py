from __future__ import annotations
from pathlib import Path


class SizeReportError(Exception):
    """Базовая ошибка: прерывает весь прогон до вывода отчёта."""


class InputNotFoundError(SizeReportError):
    def __init__(self, path: Path, what: str = "Файл"):
        self.path = Path(path).resolve()
        super().__init__(f"{what} не найден: {self.path}")


class ParseFailureError(SizeReportError):
    """Вход есть, но разобрать его не удалось (ELF, скрипт компоновщика, правки)."""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"Не удалось разобрать {source}: {detail}")


class MissingRegionsError(ParseFailureError):
    def __init__(self, source: str):
        super().__init__(source, "нет ни одного региона в блоке MEMORY")


class ZeroCapacityError(SizeReportError):
    def __init__(self, region: str):
        self.region = region
        super().__init__(f"Регион {region} имеет нулевую ёмкость")


class HistoryUnreadableError(SizeReportError):
    """Прошлый отчёт есть, но прочитать его нельзя. Не фатально."""
