"""Line-oriented parameter blocks.

Each non-empty line is ``name = value`` or ``name : value``; ``#`` starts a
comment. Values may be numbers or arithmetic over ``π``/``pi``, tuples and
lists of those, symbols (``:gauss`` or a bare ``gauss``) and pint
quantities such as ``800 nm`` or ``1e14 W/cm**2``.

    >>> parse_block("λ = 800 nm\\nτ = 6.2 fs\\nenv = :gauss")["env"]
    'gauss'
"""

from __future__ import annotations

import ast
import math
import operator
import re
from typing import Any

import pint

from efield_sim.errors import ConfigurationError
from efield_sim.units import Q_

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
}
_UNARY_OPS = {ast.UAdd: operator.pos, ast.USub: operator.neg}
_CONSTANTS = {"pi": math.pi}
_SYMBOL = re.compile(r"[^\W\d][\w²]*")
# 2π -> 2*pi
_IMPLICIT_PI = re.compile(r"(?<=[\d.)])\s*(?=π)")


class _UnsupportedExpression(Exception):
    pass


def _evaluate(node: ast.AST) -> Any:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.Name) and node.id in _CONSTANTS:
        return _CONSTANTS[node.id]
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))
    if isinstance(node, ast.Tuple):
        return tuple(_evaluate(element) for element in node.elts)
    if isinstance(node, ast.List):
        return [_evaluate(element) for element in node.elts]
    raise _UnsupportedExpression(ast.dump(node))


def parse_value(text: str) -> Any:
    """Parse a single value expression."""

    text = text.strip()
    if not text:
        raise ConfigurationError("Empty value.")
    if text.startswith(":"):
        return text[1:].strip()
    if _SYMBOL.fullmatch(text) and text not in _CONSTANTS and text != "π":
        return text

    expression = _IMPLICIT_PI.sub("*", text).replace("π", "pi")
    try:
        return _evaluate(ast.parse(expression, mode="eval"))
    except (SyntaxError, _UnsupportedExpression):
        pass
    except ZeroDivisionError as exc:
        raise ConfigurationError(f"Division by zero in value {text!r}.") from exc

    try:
        return Q_(expression)
    except (pint.errors.PintError, AttributeError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Cannot parse value {text!r}.") from exc


def _split_line(line: str, line_no: int) -> tuple[str, str]:
    for separator in ("=", ":"):
        name, found, value = line.partition(separator)
        if found and name.strip():
            return name.strip(), value
    raise ConfigurationError(f"line {line_no}: expected “parameter = value”, got {line!r}")


def parse_block(text: str) -> dict[str, Any]:
    """Parse a parameter block into a name to value mapping."""

    params: dict[str, Any] = {}
    line_numbers: dict[str, int] = {}
    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        name, value = _split_line(line, line_no)
        if name in params:
            previous = line_numbers[name]
            raise ConfigurationError(
                f"line {line_no}: field parameter {name} already specified at line {previous}"
            )
        try:
            params[name] = parse_value(value)
        except ConfigurationError as exc:
            raise ConfigurationError(f"line {line_no}: {exc}") from exc
        line_numbers[name] = line_no
    return params
