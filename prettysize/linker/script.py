# linker/script.py
"""Разбор скрипта компоновщика GNU ld.

Нам нужны только две вещи:

* регионы из блоков ``MEMORY`` (имя, начало, длина);
* выходные секции из ``SECTIONS`` и регионы, куда они размещены
  (``> RAM``: регион исполнения, ``AT> FLASH``: регион загрузки).

Тела выходных секций, ``PROVIDE``, ``ENTRY`` и прочие команды разбираются
ровно настолько, чтобы их пропустить.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import textx
from textx.exceptions import TextXError

from ..errors import InputNotFoundError, ParseFailureError


_RULES = r"""
Command:
    Memory | Sections | Include | SymbolAssignment | RawAssignment | Directive
;

Memory:
    /MEMORY\b/ '{' regions*=MemoryRegion '}'
;

MemoryRegion:
    name=RegionName ('(' attributes=/[^)]*/ ')')? ':'
    /(ORIGIN|org|o)\b/ '=' origin=Expression ','?
    /(LENGTH|len|l)\b/ '=' length=Expression
;

Sections:
    /SECTIONS\b/ '{' items*=SectionItem '}'
;

SectionItem:
    OutputSection | Include | SymbolAssignment | RawAssignment | Directive
;

OutputSection:
    name=SectionName /[^:;{}]+/? ':' /[^{};]+/?
    '{' /[^{}]+/? '}'
    ('>' region=RegionName)?
    (/AT\b/ '>' load_region=RegionName)?
    (':' phdrs+=PhdrName)*
    ('=' fill=/[^\s;,]+/)?
    ','?
;

Include:
    /INCLUDE\b/ path=/[^\s;]+/ ';'?
;

SymbolAssignment:
    symbol=SymbolName '=' value=Expression ';'
;

RawAssignment:
    target=SymbolName /[-+*\/%&|<>]*=/ /[^;]+/ ';'
;

Directive:
    command=/[A-Za-z_]\w*/ '(' arguments=Arguments ')' ';'?
;

Arguments:
    /([^()]|\(([^()]|\([^()]*\))*\))*/
;

Expression:
    operands=Term (operators=AddOperator operands=Term)*
;

Term:
    operands=Factor (operators=MulOperator operands=Factor)*
;

Factor:
    negative?='-' operand=Operand
;

Operand:
    RegionQuery | Literal | Group | SymbolReference
;

RegionQuery:
    function=/(ORIGIN|LENGTH|org|len)\b/ '(' region=RegionName ')'
;

Literal:
    value=/(0[xX][0-9a-fA-F]+|[0-9]+)([KkMm](?!\w))?/
;

Group:
    '(' expression=Expression ')'
;

SymbolReference:
    symbol=SymbolName
;

AddOperator: '+' | '-';
MulOperator: '*' | '/';

SymbolName: /[A-Za-z_.$][\w.$]*/;
RegionName: /[A-Za-z_][\w.]*/;
SectionName: /[.\w$\/-]+/;
PhdrName: /[A-Za-z_]\w*/;

Comment:
    /\/\*[\s\S]*?\*\// | /\/\/[^\n]*/
;
"""

# Один набор правил, два корня: весь скрипт и содержимое SECTIONS,
# подключённое через INCLUDE изнутри блока.
_script_mm = textx.metamodel_from_str("LinkerScript: commands*=Command;\n" + _RULES)
_sections_mm = textx.metamodel_from_str("SectionList: items*=SectionItem;\n" + _RULES)

_SCALE = {"k": 1024, "m": 1024 * 1024}


@dataclass(frozen=True)
class MemoryRegion:
    name: str
    origin: int
    length: int
    attributes: str = ""


@dataclass(frozen=True)
class OutputSection:
    name: str
    region: str | None = None       # VMA: "> RAM"
    load_region: str | None = None  # LMA: "AT> FLASH"


@dataclass
class LinkerScript:
    source: str
    memory_regions: list[MemoryRegion] = field(default_factory=list)
    output_sections: list[OutputSection] = field(default_factory=list)


def cname(o):
    return o.__class__.__name__


def literal_value(text: str) -> int:
    """'0x8000' -> 32768, '512K' -> 524288, '010' -> 8 (ведущий ноль: восьмеричное, как в ld)."""
    scale = 1
    if text[-1] in "KkMm":
        scale = _SCALE[text[-1].lower()]
        text = text[:-1]
    if text[:2] in ("0x", "0X"):
        value = int(text, 16)
    elif len(text) > 1 and text.startswith("0"):
        value = int(text, 8)
    else:
        value = int(text, 10)
    return value * scale


class _Evaluator:
    """Вычисление выражений ORIGIN/LENGTH в блоке MEMORY."""

    def __init__(self, source: str, symbols: dict):
        self.source = source
        self.symbols = symbols
        self.regions: dict[str, MemoryRegion] = {}
        self._resolving: set[str] = set()

    def fail(self, detail: str):
        return ParseFailureError(self.source, detail)

    def evaluate(self, node) -> int:
        kind = cname(node)
        if kind in ("Expression", "Term"):
            value = self.evaluate(node.operands[0])
            for operator, operand in zip(node.operators, node.operands[1:]):
                rhs = self.evaluate(operand)
                if operator == "+":
                    value += rhs
                elif operator == "-":
                    value -= rhs
                elif operator == "*":
                    value *= rhs
                else:
                    if rhs == 0:
                        raise self.fail("деление на ноль в выражении")
                    value //= rhs
            return value
        if kind == "Factor":
            value = self.evaluate(node.operand)
            return -value if node.negative else value
        if kind == "Literal":
            return literal_value(node.value)
        if kind == "Group":
            return self.evaluate(node.expression)
        if kind == "RegionQuery":
            region = self.regions.get(node.region)
            if region is None:
                raise self.fail(f"неизвестный регион памяти {node.region}")
            return region.origin if node.function in ("ORIGIN", "org") else region.length
        if kind == "SymbolReference":
            return self.symbol(node.symbol)
        raise self.fail(f"неподдерживаемое выражение {kind}")

    def symbol(self, name: str) -> int:
        if name not in self.symbols:
            raise self.fail(f"символ {name} не определён простым присваиванием")
        if name in self._resolving:
            raise self.fail(f"циклическое определение символа {name}")
        self._resolving.add(name)
        try:
            return self.evaluate(self.symbols[name])
        finally:
            self._resolving.discard(name)


def _parse_file(metamodel, path: Path):
    if not path.exists():
        raise InputNotFoundError(path, "Скрипт компоновщика")
    try:
        return metamodel.model_from_file(str(path))
    except TextXError as e:
        raise ParseFailureError(f"скрипт компоновщика {path}", str(e)) from e


def _resolve_include(name: str, base_dir: Path) -> Path:
    candidate = Path(name)
    if not candidate.is_absolute():
        local = base_dir / candidate
        if local.exists() or not candidate.exists():
            candidate = local
    if not candidate.exists():
        raise InputNotFoundError(candidate, "Подключаемый скрипт (INCLUDE)")
    return candidate.resolve()


def _expand(nodes, attr: str, metamodel, base_dir: Path, stack: tuple):
    """Развернуть INCLUDE рекурсивно, сохраняя порядок команд."""
    for node in nodes:
        if cname(node) != "Include":
            yield node
            continue
        path = _resolve_include(node.path, base_dir)
        if path in stack:
            raise ParseFailureError(f"скрипт компоновщика {path}", "циклический INCLUDE")
        model = _parse_file(metamodel, path)
        yield from _expand(getattr(model, attr), attr, metamodel, path.parent, stack + (path,))


def _build(model, source: str, base_dir: Path, stack: tuple) -> LinkerScript:
    commands = list(_expand(model.commands, "commands", _script_mm, base_dir, stack))

    # последнее присваивание побеждает, как и в ld
    symbols = {c.symbol: c.value for c in commands if cname(c) == "SymbolAssignment"}
    evaluator = _Evaluator(source, symbols)
    script = LinkerScript(source=source)

    for command in commands:
        kind = cname(command)
        if kind == "Memory":
            for spec in command.regions:
                length = evaluator.evaluate(spec.length)
                if length < 0:
                    raise evaluator.fail(f"регион {spec.name}: отрицательная длина {length}")
                region = MemoryRegion(
                    name=spec.name,
                    origin=evaluator.evaluate(spec.origin),
                    length=length,
                    attributes=(spec.attributes or "").strip(),
                )
                evaluator.regions[region.name] = region
                script.memory_regions.append(region)
        elif kind == "Sections":
            for item in _expand(command.items, "items", _sections_mm, base_dir, stack):
                if cname(item) == "OutputSection":
                    script.output_sections.append(
                        OutputSection(item.name, item.region or None, item.load_region or None)
                    )
    return script


def parse_linker_script(path: Path) -> LinkerScript:
    path = Path(path)
    model = _parse_file(_script_mm, path)
    resolved = path.resolve()
    return _build(model, f"скрипт компоновщика {path}", resolved.parent, (resolved,))


def parse_linker_script_text(text: str, base_dir: Path | None = None) -> LinkerScript:
    source = "скрипт компоновщика <текст>"
    try:
        model = _script_mm.model_from_str(text)
    except TextXError as e:
        raise ParseFailureError(source, str(e)) from e
    return _build(model, source, Path(base_dir or Path.cwd()), ())
