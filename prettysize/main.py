from __future__ import annotations
from pathlib import Path

import typer
from rich import print
from rich.markup import escape

from .config import APP_NAME, DEFAULT_SIZE_PROG, HISTORY_FILE_NAME, LOG_FILE_NAME, MISC_THRESHOLD_PERCENT
from .display.report import print_report
from .errors import HistoryUnreadableError, InputNotFoundError, SizeReportError
from .firmware.sections import ElfBackend, SizeProgBackend, read_sections
from .journal import log_event
from .layout.edits import load_edits
from .layout.history import diff_layout, read_history, save_history
from .layout.pipeline import compute_layout
from .linker.script import parse_linker_script

app = typer.Typer(name=APP_NAME, add_completion=False, help="Размер прошивки по регионам памяти из скрипта компоновщика.")


def _require(path: Path, what: str) -> Path:
    if not path.exists():
        raise InputNotFoundError(path, what)
    return path


@app.command()
def report(
    elf: Path = typer.Argument(..., help="Путь к ELF-файлу прошивки"),
    ld: Path = typer.Option(..., "--ld", help="Скрипт компоновщика (.ld)"),
    section_edits: Path = typer.Option(None, "--section-edits", help="JSON с правками отчёта"),
    size_prog: str = typer.Option(
        None, "--size-prog",
        help=f"Считать секции внешней утилитой size (напр. {DEFAULT_SIZE_PROG}) вместо разбора ELF",
    ),
    threshold: float = typer.Option(MISC_THRESHOLD_PERCENT, help="Порог (в % ёмкости) для miscellaneous"),
    log: bool = typer.Option(True, "--log/--no-log", help=f"Писать журнал {LOG_FILE_NAME} в каталог сборки"),
):
    """
    Показать, сколько места секции ELF занимают в регионах памяти,
    и насколько изменились размеры с прошлой сборки.
    """
    build_dir = elf.parent
    history_file = build_dir / HISTORY_FILE_NAME
    log_file = build_dir / LOG_FILE_NAME if log else None

    # всё читаем и считаем до первого вывода: при ошибке не печатаем и не сохраняем ничего
    try:
        _require(elf, "ELF-файл")
        _require(ld, "Скрипт компоновщика")
        backend = SizeProgBackend(elf, size_prog) if size_prog else ElfBackend(elf)
        samples = read_sections(backend)
        script = parse_linker_script(ld)
        edits = load_edits(section_edits) if section_edits is not None else []
        unreadable = None
        try:
            previous = read_history(history_file)
        except HistoryUnreadableError as e:
            unreadable, previous = e, None
        layout, skipped = compute_layout(samples, script, edits, threshold)
    except SizeReportError as e:
        print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(code=1)

    if unreadable is not None:
        log_event(log_file, "history_unreadable", {"file": str(history_file), "error": str(unreadable)})
    for edit in skipped:
        log_event(log_file, "edit_skipped", {"edit": type(edit).__name__, "args": vars(edit)})

    print_report(diff_layout(layout, previous))
    save_history(history_file, layout)
    log_event(log_file, "report", {
        "elf": str(elf),
        "ld": str(ld),
        "regions": {r.name: {"used": r.used, "length": r.capacity} for r in layout},
    })


if __name__ == "__main__":
    app()
