"""
Station formula evaluator.

Station configs may carry a liters formula per direction, written by admins as
plain arithmetic, e.g. ``balance - 900`` or ``(totalLiters + extraLiters) - 900``.
Formulas are untrusted text: they are tokenized and parsed against a fixed
grammar and never handed to ``eval``.

Grammar:
    expr   := term (("+" | "-") term)*
    term   := factor (("*" | "/") factor)*
    factor := ("+" | "-") factor | NUMBER | VARIABLE | "(" expr ")"
"""
from __future__ import annotations

import logging
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from ..dataclasses import FormulaContext

logger = logging.getLogger(__name__)

VARIABLES = ("totalLiters", "extraLiters", "balance")

_TOKEN_RE = re.compile(r"\s*(?:(\d+(?:\.\d+)?|\.\d+)|([A-Za-z_][A-Za-z0-9_]*)|(.))")
_REFERENCE_RE = re.compile(r"\b(totalLiters|extraLiters|balance)\b")


class FormulaError(Exception):
    """Base exception for formula evaluation failures"""
    pass


class MissingDataError(FormulaError):
    """Raised when every variable a formula depends on is missing"""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing: {', '.join(self.missing)}")


class FormulaEvaluationError(FormulaError):
    """Raised when a formula is malformed or does not produce a finite number"""
    pass


def referenced_variables(formula: str) -> List[str]:
    """Variables the formula textually refers to, in canonical order."""
    found = set(_REFERENCE_RE.findall(formula or ""))
    return [name for name in VARIABLES if name in found]


def _is_missing(value) -> bool:
    return value is None or value == 0


def tokenize(formula: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    text = (formula or "").strip()
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m or m.end() == pos:
            raise FormulaEvaluationError(f"Could not read formula at position {pos}")
        number, name, op = m.groups()
        if number is not None:
            tokens.append(("NUM", number))
        elif name is not None:
            if name not in VARIABLES:
                raise FormulaEvaluationError(f"Unknown variable '{name}' in formula")
            tokens.append(("VAR", name))
        elif op is not None and not op.isspace():
            if op not in "+-*/()":
                raise FormulaEvaluationError(f"Unexpected character '{op}' in formula")
            tokens.append(("OP", op))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, tokens: List[Tuple[str, str]], variables: Dict[str, Decimal]):
        self.tokens = tokens
        self.variables = variables
        self.pos = 0

    def _peek(self) -> Optional[Tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _take(self) -> Tuple[str, str]:
        tok = self._peek()
        if tok is None:
            raise FormulaEvaluationError("Unexpected end of formula")
        self.pos += 1
        return tok

    def parse(self) -> Decimal:
        if not self.tokens:
            raise FormulaEvaluationError("Formula is empty")
        value = self.expr()
        if self._peek() is not None:
            raise FormulaEvaluationError(f"Unexpected token '{self._peek()[1]}'")
        return value

    def expr(self) -> Decimal:
        value = self.term()
        while self._peek() in (("OP", "+"), ("OP", "-")):
            op = self._take()[1]
            rhs = self.term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def term(self) -> Decimal:
        value = self.factor()
        while self._peek() in (("OP", "*"), ("OP", "/")):
            op = self._take()[1]
            rhs = self.factor()
            if op == "*":
                value = value * rhs
            else:
                if rhs == 0:
                    raise FormulaEvaluationError("Division by zero")
                value = value / rhs
        return value

    def factor(self) -> Decimal:
        kind, text = self._take()
        if kind == "OP" and text in "+-":
            value = self.factor()
            return -value if text == "-" else value
        if kind == "NUM":
            return Decimal(text)
        if kind == "VAR":
            return self.variables[text]
        if (kind, text) == ("OP", "("):
            value = self.expr()
            if self._take() != ("OP", ")"):
                raise FormulaEvaluationError("Missing closing parenthesis")
            return value
        raise FormulaEvaluationError(f"Unexpected token '{text}'")


def evaluate_formula(formula: str, context: FormulaContext) -> int:
    """
    Evaluate a station formula to whole liters.

    Args:
        formula: Arithmetic over totalLiters, extraLiters and balance
        context: Known values for the variables

    Returns:
        int: Liters rounded to the nearest whole number (half away from zero)

    Raises:
        MissingDataError: If every variable the formula references is missing
        FormulaEvaluationError: If the formula is malformed or not finite
    """
    values = context.as_variables()
    needed = referenced_variables(formula)
    missing = [name for name in needed if _is_missing(values[name])]

    if needed and len(missing) == len(needed):
        logger.warning(f"Formula '{formula}' not evaluated, missing: {missing}")
        raise MissingDataError(missing)

    variables = {name: Decimal(str(values[name] or 0)) for name in VARIABLES}
    try:
        result = _Parser(tokenize(formula), variables).parse()
    except ArithmeticError as e:
        raise FormulaEvaluationError(f"Formula could not be evaluated: {e}")

    if not result.is_finite():
        raise FormulaEvaluationError("Formula did not produce a finite number")

    liters = int(result.to_integral_value(rounding=ROUND_HALF_UP))
    logger.debug(f"Formula '{formula}' evaluated to {liters}L")
    return liters


def validate_formula(formula: str) -> List[str]:
    """
    Check that a formula parses, without needing real values.

    Returns:
        List[str]: Validation errors (empty if valid)
    """
    errors = []
    if not (formula or "").strip():
        return errors
    sample = {"totalLiters": Decimal("3571"), "extraLiters": Decimal("137"), "balance": Decimal("911")}
    try:
        _Parser(tokenize(formula), sample).parse()
    except FormulaEvaluationError as e:
        errors.append(str(e))
    except ArithmeticError as e:
        errors.append(f"Formula could not be evaluated: {e}")
    return errors
