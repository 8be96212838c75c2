"""Local question instancing with a restricted arithmetic formula language.

Answer formulas are plain expressions over a template's variable names, for
example ``round(price * (1 - discount / 100), 2)``. They are parsed with
:mod:`ast` and only literals, variable names, arithmetic, comparisons and a
few math functions are evaluated; nothing else is ever executed.
"""

import ast
import math
import operator
import random
import re
from typing import Any

from learnloop.errors import FormulaError
from learnloop.models.content import VariableDefinition, VariableType

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_COMPARE_OPS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}

FUNCTIONS = {
    "abs": abs,
    "round": round,
    "min": min,
    "max": max,
    "sqrt": math.sqrt,
    "floor": math.floor,
    "ceil": math.ceil,
}

# Keeps a formula from building huge numbers
MAX_EXPONENT = 100
MAX_INT_BITS = 1024
MAX_STRING_LENGTH = 1000


def _check_size(value: Any) -> Any:
    if isinstance(value, int) and value.bit_length() > MAX_INT_BITS:
        raise FormulaError("Result too large")
    return value


def _check_repetition(left: Any, right: Any) -> None:
    for text, times in ((left, right), (right, left)):
        if isinstance(text, str) and isinstance(times, int) and len(text) * times > MAX_STRING_LENGTH:
            raise FormulaError("Result too large")


def _evaluate(node: ast.AST, values: dict[str, Any]) -> Any:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body, values)

    if isinstance(node, ast.Constant):
        if isinstance(node.value, (int, float, str)) and not isinstance(node.value, bool):
            return node.value
        raise FormulaError(f"Unsupported literal: {node.value!r}")

    if isinstance(node, ast.Name):
        if node.id not in values:
            raise FormulaError(f"Unknown variable: {node.id}")
        return values[node.id]

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        left = _evaluate(node.left, values)
        right = _evaluate(node.right, values)
        if isinstance(node.op, ast.Pow) and isinstance(right, (int, float)) and abs(right) > MAX_EXPONENT:
            raise FormulaError("Exponent too large")
        if isinstance(node.op, ast.Mult):
            _check_repetition(left, right)
        return _check_size(_BINARY_OPS[type(node.op)](left, right))

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand, values))

    if isinstance(node, ast.Compare):
        left = _evaluate(node.left, values)
        for op, comparator in zip(node.ops, node.comparators):
            if type(op) not in _COMPARE_OPS:
                raise FormulaError(f"Unsupported comparison: {type(op).__name__}")
            right = _evaluate(comparator, values)
            if not _COMPARE_OPS[type(op)](left, right):
                return False
            left = right
        return True

    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
            raise FormulaError("Only abs, round, min, max, sqrt, floor and ceil may be called")
        if node.keywords:
            raise FormulaError("Keyword arguments are not supported")
        args = [_evaluate(arg, values) for arg in node.args]
        return FUNCTIONS[node.func.id](*args)

    raise FormulaError(f"Unsupported expression: {type(node).__name__}")


def evaluate_formula(expression: str, values: dict[str, Any]) -> Any:
    """
    Evaluate an answer formula against sampled variable values.

    Args:
        expression: Formula over the variable names
        values: Variable values

    Returns:
        The formula's value

    Raises:
        FormulaError: If the formula is malformed, uses a disallowed
            construct or fails while evaluating
    """
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except (SyntaxError, ValueError) as e:
        raise FormulaError(f"Invalid formula: {e}") from e

    try:
        return _evaluate(tree, values)
    except FormulaError:
        raise
    except (ArithmeticError, TypeError, ValueError) as e:
        raise FormulaError(f"Formula evaluation failed: {e}") from e


def sample_values(
    variables: list[VariableDefinition], rng: random.Random | None = None
) -> dict[str, Any]:
    """
    Draw a value for every template variable.

    Numbers are uniform in [min, max] (defaults 0 and 100) rounded to the
    variable's precision; choices pick one option; anything else is
    ``"sample"``.
    """
    rng = rng or random.Random()
    values: dict[str, Any] = {}
    for variable in variables:
        if variable.type == VariableType.NUMBER:
            low = variable.min if variable.min is not None else 0
            high = variable.max if variable.max is not None else 100
            precision = variable.precision or 0
            value = round(rng.uniform(low, high), precision)
            values[variable.name] = int(value) if precision == 0 else value
        elif variable.type == VariableType.CHOICE and variable.options:
            values[variable.name] = rng.choice(variable.options)
        else:
            values[variable.name] = "sample"
    return values


def format_answer(value: Any) -> str:
    """Render integers plainly and other numbers with two decimals."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{value:.2f}"
    return str(value)


def render_question(text: str, values: dict[str, Any]) -> str:
    """Substitute ``{name}`` placeholders with variable values."""
    for name, value in values.items():
        text = re.sub(r"\{" + re.escape(name) + r"\}", lambda _: str(value), text)
    return text
