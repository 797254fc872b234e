APP_NAME = "prettysize"

# файл с прошлым отчётом кладётся рядом с ELF (в каталог сборки)
HISTORY_FILE_NAME = "fw-size.last"
LOG_FILE_NAME = "fw-size.log.jsonl"

MISC_SECTION_NAME = "miscellaneous"
MISC_THRESHOLD_PERCENT = 2.0  # секции меньше 2% ёмкости региона уходят в "miscellaneous"

BAR_CELLS = 50  # ширина полосы = ширина строки отчёта (18 + 25 + 7)

DEFAULT_SIZE_PROG = "arm-none-eabi-size"
