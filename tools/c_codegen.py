#!/usr/bin/env python3
"""
c_codegen.py - Render c_ast nodes as C source text.

generate() is the only entry point mapc.py needs; generate_node(),
generate_value() and chunk_rows() are exposed so pieces can be checked on
their own.

Layout:
  - one tab per indentation level
  - struct initializers indent by nesting depth, closing brace one level less
  - array rows stay one tab in no matter how deep the array sits
  - every row of an array ends in ',' (including the last)
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, TypeVar

from c_ast import (
    Array,
    AstNode,
    Const,
    Define,
    Include,
    Literal,
    PropertyDeclaration,
    PropertyValue,
    StructDeclaration,
    StructValue,
    Value,
)

INDENT = "\t"

T = TypeVar("T")


def chunk_rows(items: Sequence[T], width: Optional[int]) -> List[List[T]]:
    """Split items into consecutive rows of at most `width` (one row if None)."""
    if width is None:
        return [list(items)] if items else []
    assert width > 0, f"row width must be positive, got {width}"
    return [list(items[i : i + width]) for i in range(0, len(items), width)]


# ----------------------------
# Top-level nodes
# ----------------------------


def generate(nodes: Iterable[AstNode]) -> str:
    return "".join(generate_node(node) for node in nodes)


def generate_node(node: AstNode) -> str:
    if isinstance(node, Include):
        return f'#include "{node.filename}"\n'
    if isinstance(node, Define):
        return f"#define {node.name} {node.value}\n"
    if isinstance(node, StructDeclaration):
        fields = _property_declarations(node.properties)
        return f"typedef struct {node.name} {{\n{fields}}} {node.name};\n"
    if isinstance(node, Const):
        value_str = generate_value(node.value, 1)
        if isinstance(node.value, Array):
            size = len(node.value.values)
            return f"const {node.c_type} {node.name}[{size}] = {value_str};\n"
        return f"const {node.c_type} {node.name} = {value_str};\n"
    raise TypeError(f"Unsupported AST node: {type(node).__name__}")


def _property_declarations(properties: Sequence[PropertyDeclaration]) -> str:
    return "".join(f"{INDENT}{p.c_type} {p.name};\n" for p in properties)


# ----------------------------
# Values
# ----------------------------


def generate_value(value: Value, nesting: int) -> str:
    assert nesting >= 1, f"nesting starts at 1, got {nesting}"
    if isinstance(value, Literal):
        return value.value
    if isinstance(value, StructValue):
        return _property_values(value.properties, nesting)
    if isinstance(value, Array):
        return _array_values(value.values, value.row_width)
    raise TypeError(f"Unsupported value: {type(value).__name__}")


def _property_values(properties: Sequence[PropertyValue], nesting: int) -> str:
    indentation = INDENT * nesting
    out = ["{\n"]
    for prop in properties:
        value_str = generate_value(prop.value, nesting + 1)
        out.append(f"{indentation}.{prop.name} = {value_str},\n")
    out.append(INDENT * (nesting - 1))
    out.append("}")
    return "".join(out)


def _array_values(values: Sequence[Value], row_width: Optional[int]) -> str:
    out = ["{\n"]
    # Rows are flat: elements always render at the outermost level.
    for row in chunk_rows(values, row_width):
        out.append(INDENT)
        out.append(",".join(generate_value(v, 1) for v in row))
        out.append(",\n")
    out.append("}")
    return "".join(out)
