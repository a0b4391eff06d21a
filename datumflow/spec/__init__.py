"""Datumflow input specs.

- model: the closed set of input node kinds
- loader: building trees from mappings, YAML/JSON text and files
- validator: structural checks run before any resolution
"""

from .loader import load_spec, parse_input, parse_spec_text
from .model import (
    AtomInput,
    CrossInput,
    GroupInput,
    InputNode,
    JoinInput,
    UnionInput,
    is_combinator,
    iter_atoms,
)
from .validator import collect_problems, first_problem, iter_problems, validate

__all__ = [
    "AtomInput",
    "CrossInput",
    "GroupInput",
    "InputNode",
    "JoinInput",
    "UnionInput",
    "is_combinator",
    "iter_atoms",
    "load_spec",
    "parse_input",
    "parse_spec_text",
    "collect_problems",
    "first_problem",
    "iter_problems",
    "validate",
]
