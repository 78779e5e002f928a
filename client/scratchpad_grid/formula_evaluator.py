"""
Formula Evaluator
Evaluates the grid's formula micro-language: cell references, range
functions (SUM, AVERAGE, COUNT, MAX, MIN) and plain arithmetic.

Values are computed on every read from the current CellStore; nothing is
cached between reads.
"""

import logging
import math
import re
from decimal import Decimal
from typing import Optional, Set, Union

from .cell_addressing import CellPosition, GridDimensions, get_cell_id, parse_cell_id
from .cell_store import CellStore
from .errors import EVAL_ERROR, FORMULA_ERRORS, NAME_ERROR, REF_ERROR

logger = logging.getLogger(__name__)

CellValue = Union[str, float]

# FUNC(A1:B5) after the formula body has been upper-cased
_RANGE_FUNCTION_RE = re.compile(r'([A-Z]+)\(([A-Z]+\d+):([A-Z]+\d+)\)')
_CELL_REF_RE = re.compile(r'[A-Z]+\d+')
_ARITHMETIC_RE = re.compile(r'^[0-9\s.+\-*/()]+$')
_NUMBER_RE = re.compile(r'\d+(?:\.\d*)?|\.\d+')

RESULT_DECIMALS = 4


def _sum(values):
    return sum(values)


def _average(values):
    return sum(values) / len(values) if values else 0


def _count(values):
    return len(values)


def _max(values):
    return max(values) if values else 0


def _min(values):
    return min(values) if values else 0


RANGE_FUNCTIONS = {
    'SUM': _sum,
    'AVERAGE': _average,
    'COUNT': _count,
    'MAX': _max,
    'MIN': _min,
}


class ArithmeticSyntaxError(ValueError):
    """Raised for arithmetic text the parser cannot read."""


class ArithmeticParser:
    """Recursive descent parser for ``+ - * /``, unary signs and parentheses.

    Grammar::

        expr   := term (('+' | '-') term)*
        term   := unary (('*' | '/') unary)*
        unary  := ('+' | '-') unary | primary
        primary:= NUMBER | '(' expr ')'

    Only digits, '.', the four operators, parentheses and whitespace are
    understood. Division by zero raises ZeroDivisionError.
    """

    def __init__(self, text: str):
        self.tokens = self._tokenize(text)
        self.pos = 0

    @staticmethod
    def _tokenize(text: str) -> list:
        tokens = []
        i = 0
        while i < len(text):
            ch = text[i]
            if ch.isspace():
                i += 1
                continue
            if ch in '+-*/()':
                tokens.append(ch)
                i += 1
                continue
            match = _NUMBER_RE.match(text, i)
            if not match:
                raise ArithmeticSyntaxError(f"Unexpected character {ch!r} at {i}")
            tokens.append(float(match.group(0)))
            i = match.end()
        return tokens

    @classmethod
    def evaluate(cls, text: str) -> float:
        parser = cls(text)
        value = parser._expr()
        if parser.pos != len(parser.tokens):
            raise ArithmeticSyntaxError(f"Unexpected token {parser._peek()!r}")
        return value

    def _peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _next(self):
        token = self._peek()
        if token is None:
            raise ArithmeticSyntaxError("Unexpected end of expression")
        self.pos += 1
        return token

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in ('+', '-'):
            if self._next() == '+':
                value += self._term()
            else:
                value -= self._term()
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek() in ('*', '/'):
            if self._next() == '*':
                value *= self._unary()
            else:
                value /= self._unary()
        return value

    def _unary(self) -> float:
        if self._peek() == '+':
            self._next()
            return self._unary()
        if self._peek() == '-':
            self._next()
            return -self._unary()
        return self._primary()

    def _primary(self) -> float:
        token = self._next()
        if isinstance(token, float):
            return token
        if token == '(':
            value = self._expr()
            if self._next() != ')':
                raise ArithmeticSyntaxError("Expected ')'")
            return value
        raise ArithmeticSyntaxError(f"Unexpected token {token!r}")


class _FormulaError(Exception):
    """Short-circuits a formula with one of the displayed error values."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


class _PendingCell(Exception):
    """A referenced formula cell has not been evaluated yet on this path."""

    def __init__(self, key):
        super().__init__(key[0])
        self.key = key


def format_value(value: CellValue) -> str:
    """Render an evaluated value as cell text (10.0 -> "10")."""
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)
    return str(value)


def to_formula_text(value: float) -> str:
    """Render a number in plain positional notation for arithmetic text.

    repr() switches to exponent form (1e-05, 1e+16), which the arithmetic
    parser does not read.
    """
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    text = format(Decimal(repr(value)), 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def is_error(value: CellValue) -> bool:
    return isinstance(value, str) and value in FORMULA_ERRORS


class FormulaEvaluator:
    """Evaluates cells of a CellStore.

    Referenced formula cells are resolved with an explicit work stack rather
    than Python recursion, so reference chains as long as the grid evaluate
    without hitting the interpreter's recursion limit. Results are memoized
    per (cell, path) for the duration of one ``evaluate()`` call only.

    Args:
        store: The grid's cell store
        dims: Grid dimensions; references outside them are reference errors.
            None leaves references unbounded.
    """

    def __init__(self, store: CellStore, dims: Optional[GridDimensions] = None):
        self.store = store
        self.dims = dims

    def evaluate(self, pos: CellPosition, visited: Optional[Set[str]] = None) -> CellValue:
        """Evaluate one cell.

        Args:
            pos: Position of the cell
            visited: Ids of formula cells already being evaluated above this
                one (circular reference guard). Every referenced cell gets
                its own copy extended with the referencing cell.

        Returns:
            "" for an empty cell, a float for numbers, the literal text for
            other values, or one of "#REF!", "#NAME?", "#ERROR!"
        """
        root = (get_cell_id(pos), frozenset(visited or ()))
        results = {}
        pending = [root]

        while pending:
            key = pending[-1]
            if key in results:
                pending.pop()
                continue
            try:
                results[key] = self._evaluate_cell(key, results)
            except _PendingCell as e:
                pending.append(e.key)
                continue
            pending.pop()

        return results[root]

    def display_value(self, pos: CellPosition) -> str:
        """Evaluated value of a cell as display text."""
        return format_value(self.evaluate(pos))

    @staticmethod
    def _literal(raw: str) -> CellValue:
        # float() would read "1_000" as a number
        if '_' in raw:
            return raw
        try:
            number = float(raw)
        except ValueError:
            return raw
        return number if math.isfinite(number) else raw

    def _evaluate_cell(self, key, results: dict) -> CellValue:
        """Evaluate one (cell id, path) pair.

        Raises:
            _PendingCell: A referenced formula cell has no result yet
        """
        cell_id, path = key
        raw = self.store.get(cell_id)
        if not raw:
            return ""

        if not raw.startswith('='):
            return self._literal(raw)

        if cell_id in path:
            return REF_ERROR

        try:
            return self._evaluate_formula(raw[1:].upper(), path | {cell_id}, results)
        except _PendingCell:
            raise
        except _FormulaError as e:
            return e.code
        except Exception as e:
            logger.debug(f"Formula in {cell_id} failed: {e}")
            return EVAL_ERROR

    def _resolve(self, pos: CellPosition, path: frozenset, results: dict) -> CellValue:
        cell_id = get_cell_id(pos)
        raw = self.store.get(cell_id)
        if not raw:
            return ""
        if not raw.startswith('='):
            return self._literal(raw)

        key = (cell_id, path)
        if key not in results:
            raise _PendingCell(key)
        return results[key]

    def _evaluate_formula(self, body: str, path: frozenset, results: dict) -> CellValue:
        body = _RANGE_FUNCTION_RE.sub(
            lambda m: self._replace_range_function(m, path, results), body)
        body = _CELL_REF_RE.sub(lambda m: self._replace_reference(m, path, results), body)

        if not _ARITHMETIC_RE.match(body):
            return NAME_ERROR

        result = ArithmeticParser.evaluate(body)
        if not math.isfinite(result):
            return EVAL_ERROR
        return round(result, RESULT_DECIMALS)

    def _replace_range_function(self, match, path: frozenset, results: dict) -> str:
        func_name, start_id, end_id = match.groups()
        func = RANGE_FUNCTIONS.get(func_name)
        if func is None:
            raise _FormulaError(NAME_ERROR)

        start = parse_cell_id(start_id, self.dims)
        end = parse_cell_id(end_id, self.dims)
        if start is None or end is None:
            raise _FormulaError(NAME_ERROR)

        values = []
        for row in range(min(start.row, end.row), max(start.row, end.row) + 1):
            for col in range(min(start.col, end.col), max(start.col, end.col) + 1):
                value = self._resolve(CellPosition(row, col), path, results)
                if isinstance(value, float):
                    values.append(value)

        return to_formula_text(float(func(values)))

    def _replace_reference(self, match, path: frozenset, results: dict) -> str:
        pos = parse_cell_id(match.group(0), self.dims)
        if pos is None:
            raise _FormulaError(REF_ERROR)

        value = self._resolve(pos, path, results)
        if is_error(value):
            raise _FormulaError(value)
        if isinstance(value, float):
            return to_formula_text(value)
        return format_value(value)
