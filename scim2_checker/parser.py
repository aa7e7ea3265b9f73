"""Parsers for SCIM attribute paths and filter expressions.

Paths follow the ``attrPath`` and ``valuePath`` rules of :rfc:`RFC7644 §3.10
<7644#section-3.10>`, filters follow :rfc:`RFC7644 §3.4.2.2
<7644#section-3.4.2.2>`. Operator precedence is ``not`` > ``and`` > ``or``,
and operators are case-insensitive.
"""

import json
from collections.abc import Callable
from typing import NoReturn

from .exceptions import InvalidFilterException
from .exceptions import InvalidPathException
from .filters import ComparisonFilter
from .filters import CombiningFilter
from .filters import ComplexValueFilter
from .filters import Filter
from .filters import FilterType
from .filters import NotFilter
from .filters import PresentFilter
from .path import Path
from .utils import is_urn


def _reject_constant(name: str) -> NoReturn:
    raise ValueError(f"{name} is not a JSON literal")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)
_WORD_TERMINATORS = frozenset(" ()[]")
_KEYWORD_TERMINATORS = frozenset(" (")
_UNEXPECTED_END = "Unexpected end of filter string"


def _is_name_char(char: str) -> bool:
    return char.isalnum() or char in "-_$"


class _Scanner:
    """Cursor over a path or filter string."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return "" if self.at_end else self.text[self.pos]

    def advance(self) -> None:
        self.pos += 1

    def skip_spaces(self) -> None:
        while self.peek() == " ":
            self.pos += 1

    def read_while(self, predicate: Callable[[str], bool]) -> str:
        start = self.pos
        while not self.at_end and predicate(self.text[self.pos]):
            self.pos += 1
        return self.text[start : self.pos]

    def read_word(self) -> str:
        self.skip_spaces()
        return self.read_while(lambda char: char not in _WORD_TERMINATORS)

    def accept_keyword(self, keyword: str) -> bool:
        """Consume ``keyword`` if it is the next token, ignoring case."""
        self.skip_spaces()
        end = self.pos + len(keyword)
        if self.text[self.pos : end].lower() != keyword:
            return False
        if end < len(self.text) and self.text[end] not in _KEYWORD_TERMINATORS:
            return False
        self.pos = end
        return True


def parse_path(path: str | None) -> Path:
    """Parse a SCIM attribute path.

    An empty or missing string gives the root path. A path prefixed by a
    schema URN is split at the last colon before any value filter, and a
    trailing colon designates the root of an extension namespace::

        parse_path('emails[type eq "work"].value')
        parse_path("urn:ietf:params:scim:schemas:extension:enterprise:2.0:User:manager")

    :param path: The path string.
    :returns: The parsed path.
    :raises InvalidPathException: If the string is not a valid path.
    """
    if path is None or not path.strip():
        return Path.root()

    text = path.strip()
    result = Path.root()
    if is_urn(text):
        bracket = text.find("[")
        head = text if bracket < 0 else text[:bracket]
        colon = head.rfind(":")
        urn, text = text[:colon], text[colon + 1 :]
        try:
            result = Path.root(urn)
        except ValueError as exc:
            raise InvalidPathException(path=path, detail=str(exc)) from exc

        if not text:
            return result

    try:
        return _read_path(_Scanner(text), result)
    except InvalidPathException as exc:
        exc.path = path
        raise


def _read_path(scanner: _Scanner, path: Path) -> Path:
    while True:
        start = scanner.pos
        name = scanner.read_while(_is_name_char)
        if not name:
            if scanner.at_end:
                detail = f"Attribute name expected at position {start}"
            else:
                detail = (
                    f"Unexpected character '{scanner.peek()}' at position "
                    f"{scanner.pos} for token starting at {start}"
                )
            raise InvalidPathException(detail=detail)

        value_filter = None
        if scanner.peek() == "[":
            scanner.advance()
            try:
                value_filter = _read_filter(scanner, in_value_filter=True)
            except InvalidFilterException as exc:
                raise InvalidPathException(
                    detail=f"Invalid value filter: {exc}"
                ) from exc

        path = path.attribute(name, value_filter)
        if scanner.at_end:
            return path

        if scanner.peek() != ".":
            raise InvalidPathException(
                detail=f"Unexpected character '{scanner.peek()}' at position {scanner.pos}"
            )

        scanner.advance()
        if scanner.at_end:
            raise InvalidPathException(detail="Unexpected end of path string")


def parse_filter(filter: str) -> Filter:
    """Parse a SCIM filter expression.

    :param filter: The filter string, e.g. ``userName eq "bjensen" and not (title pr)``.
    :returns: The parsed filter tree.
    :raises InvalidFilterException: If the string is not a valid filter.
    """
    scanner = _Scanner(filter.strip())
    try:
        return _read_filter(scanner, in_value_filter=False)
    except InvalidFilterException as exc:
        exc.filter = filter
        raise


def _read_filter(scanner: _Scanner, in_value_filter: bool) -> Filter:
    result = _read_or(scanner)
    scanner.skip_spaces()
    if in_value_filter:
        if scanner.at_end:
            raise InvalidFilterException(detail=_UNEXPECTED_END)
        if scanner.peek() != "]":
            raise _unexpected(scanner)
        scanner.advance()
    elif not scanner.at_end:
        raise _unexpected(scanner)
    return result


def _unexpected(scanner: _Scanner) -> InvalidFilterException:
    return InvalidFilterException(
        detail=f"Unexpected character '{scanner.peek()}' at position {scanner.pos}"
    )


def _read_or(scanner: _Scanner) -> Filter:
    components = [_read_and(scanner)]
    while scanner.accept_keyword("or"):
        components.append(_read_and(scanner))
    if len(components) == 1:
        return components[0]
    return CombiningFilter(FilterType.or_, tuple(components))


def _read_and(scanner: _Scanner) -> Filter:
    components = [_read_unary(scanner)]
    while scanner.accept_keyword("and"):
        components.append(_read_unary(scanner))
    if len(components) == 1:
        return components[0]
    return CombiningFilter(FilterType.and_, tuple(components))


def _read_group(scanner: _Scanner) -> Filter:
    """Read a parenthesized expression, the opening parenthesis being consumed."""
    result = _read_or(scanner)
    scanner.skip_spaces()
    if scanner.at_end:
        raise InvalidFilterException(detail=_UNEXPECTED_END)
    if scanner.peek() != ")":
        raise _unexpected(scanner)
    scanner.advance()
    return result


def _read_unary(scanner: _Scanner) -> Filter:
    scanner.skip_spaces()
    if scanner.at_end:
        raise InvalidFilterException(detail=_UNEXPECTED_END)

    if scanner.peek() == "(":
        scanner.advance()
        return _read_group(scanner)

    if scanner.accept_keyword("not"):
        scanner.skip_spaces()
        if scanner.at_end:
            raise InvalidFilterException(detail=_UNEXPECTED_END)
        if scanner.peek() != "(":
            raise InvalidFilterException(
                detail=f"Expected '(' at position {scanner.pos}"
            )
        scanner.advance()
        return NotFilter(_read_group(scanner))

    return _read_attribute_expression(scanner)


def _read_attribute_expression(scanner: _Scanner) -> Filter:
    start = scanner.pos
    word = scanner.read_word()
    if not word:
        raise _unexpected(scanner)

    try:
        attribute_path = parse_path(word)
    except InvalidPathException as exc:
        raise InvalidFilterException(
            detail=f"Invalid attribute path at position {start}: {exc}"
        ) from exc

    if attribute_path.is_root:
        raise InvalidFilterException(
            detail=f"Attribute path expected at position {start}"
        )

    if scanner.peek() == "[":
        scanner.advance()
        return ComplexValueFilter(
            attribute_path, _read_filter(scanner, in_value_filter=True)
        )

    operator_start = scanner.pos
    operator = scanner.read_word().lower()
    if not operator:
        raise InvalidFilterException(detail=_UNEXPECTED_END)

    if operator == FilterType.present.value:
        return PresentFilter(attribute_path)

    try:
        filter_type = FilterType(operator)
    except ValueError:
        filter_type = None

    if filter_type is None or not filter_type.is_comparison:
        raise InvalidFilterException(
            detail=(
                f"Unrecognized attribute operator '{operator}' at position "
                f"{operator_start}. Expected: eq,ne,co,sw,ew,pr,gt,ge,lt,le"
            )
        )

    return ComparisonFilter(filter_type, attribute_path, _read_value(scanner))


def _read_value(scanner: _Scanner) -> str | int | float | bool | None:
    scanner.skip_spaces()
    if scanner.at_end:
        raise InvalidFilterException(detail=_UNEXPECTED_END)

    start = scanner.pos
    try:
        value, end = _DECODER.raw_decode(scanner.text, start)
    except json.JSONDecodeError as exc:
        raise InvalidFilterException(
            detail=f"Invalid comparison value at position {start}: {exc.msg}"
        ) from exc
    except ValueError as exc:
        raise InvalidFilterException(
            detail=f"Invalid comparison value at position {start}: {exc}"
        ) from exc

    if isinstance(value, dict | list):
        raise InvalidFilterException(
            detail=f"Invalid comparison value at position {start}: expected a JSON literal"
        )

    scanner.pos = end
    return value
