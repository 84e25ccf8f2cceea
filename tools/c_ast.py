#!/usr/bin/env python3
"""
c_ast.py - Declarations and initializer values that c_codegen.py turns into C.

Nodes are built once (by mapc.py or a test) and handed to the emitter as-is.
The variant sets are closed: anything consuming them handles
every variant and rejects anything else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


# ----------------------------
# Struct fields
# ----------------------------


@dataclass(frozen=True)
class PropertyDeclaration:
    name: str
    c_type: str


@dataclass(frozen=True)
class PropertyValue:
    name: str
    value: "Value"


# ----------------------------
# Values
# ----------------------------


@dataclass(frozen=True)
class Literal:
    value: str  # pre-formatted token, emitted verbatim


@dataclass(frozen=True)
class StructValue:
    properties: List[PropertyValue] = field(default_factory=list)


@dataclass(frozen=True)
class Array:
    values: List["Value"] = field(default_factory=list)
    row_width: Optional[int] = None  # elements per emitted line; None = one line


Value = Union[Literal, StructValue, Array]


# ----------------------------
# Top-level nodes
# ----------------------------


@dataclass(frozen=True)
class Include:
    filename: str


@dataclass(frozen=True)
class Define:
    name: str
    value: str


@dataclass(frozen=True)
class StructDeclaration:
    name: str
    properties: List[PropertyDeclaration] = field(default_factory=list)


@dataclass(frozen=True)
class Const:
    name: str
    c_type: str
    value: Value


AstNode = Union[Include, Define, StructDeclaration, Const]
