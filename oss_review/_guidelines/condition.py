"""Condition expressions for license guideline rules.

Grammar::

    condition   := disjunction ("&&" disjunction)*
    disjunction := term ("||" term)*
    term        := "always"
                 | ATTRIBUTE                       # is_modified, is_distributed
                 | "!" ATTRIBUTE
                 | ATTRIBUTE "==" ("true" | "false")
                 | "link_type" "==" STRING         # "static" / 'dynamic'

``&&`` is the outer operator: ``a || b && c`` means ``(a || b) && c``.
Guideline files written so far never mix the two operators, and there is
no grouping syntax, so mixed conditions should be avoided.

A term that does not match any form is kept as an ``Unknown`` node. It
evaluates to false and logs a warning, without invalidating the rest of
the condition.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from ..logging_config import logger
from .models import ComponentContext

BOOLEAN_ATTRIBUTES = ("is_modified", "is_distributed")
STRING_ATTRIBUTES = ("link_type",)
LINK_TYPES = ("static", "dynamic")

_TOKEN_RE = re.compile(
    r"""
    (?P<AND>&&)
  | (?P<OR>\|\|)
  | (?P<EQ>==)
  | (?P<NOT>!)
  | (?P<STRING>"[^"]*"|'[^']*')
  | (?P<NAME>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<OTHER>\S)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class Always:
    def evaluate(self, context: ComponentContext) -> bool:
        return True


@dataclass(frozen=True)
class AttributeTest:
    """``attribute == expected``; false whenever the attribute is unset."""

    attribute: str
    expected: Union[bool, str]

    def evaluate(self, context: ComponentContext) -> bool:
        actual = getattr(context, self.attribute)
        if actual is None:
            return False
        return actual == self.expected


@dataclass(frozen=True)
class Unknown:
    text: str

    def evaluate(self, context: ComponentContext) -> bool:
        logger.warning(f"Unknown condition: {self.text}")
        return False


@dataclass(frozen=True)
class AllOf:
    terms: Tuple["Expression", ...]

    def evaluate(self, context: ComponentContext) -> bool:
        return all(term.evaluate(context) for term in self.terms)


@dataclass(frozen=True)
class AnyOf:
    terms: Tuple["Expression", ...]

    def evaluate(self, context: ComponentContext) -> bool:
        return any(term.evaluate(context) for term in self.terms)


Expression = Union[Always, AttributeTest, Unknown, AllOf, AnyOf]


def tokenize(source: str) -> List[Token]:
    return [
        Token(kind=match.lastgroup or "OTHER", text=match.group(), start=match.start(), end=match.end())
        for match in _TOKEN_RE.finditer(source)
    ]


def _split(tokens: Sequence[Token], kind: str) -> List[List[Token]]:
    groups: List[List[Token]] = [[]]
    for token in tokens:
        if token.kind == kind:
            groups.append([])
        else:
            groups[-1].append(token)
    return groups


def _parse_term(tokens: Sequence[Token], source: str) -> Expression:
    kinds = [t.kind for t in tokens]
    texts = [t.text for t in tokens]

    if kinds == ["NAME"]:
        if texts[0] == "always":
            return Always()
        if texts[0] in BOOLEAN_ATTRIBUTES:
            return AttributeTest(texts[0], True)
    elif kinds == ["NOT", "NAME"] and texts[1] in BOOLEAN_ATTRIBUTES:
        return AttributeTest(texts[1], False)
    elif kinds == ["NAME", "EQ", "NAME"] and texts[0] in BOOLEAN_ATTRIBUTES and texts[2] in ("true", "false"):
        return AttributeTest(texts[0], texts[2] == "true")
    elif kinds == ["NAME", "EQ", "STRING"] and texts[0] in STRING_ATTRIBUTES and texts[2][1:-1] in LINK_TYPES:
        return AttributeTest(texts[0], texts[2][1:-1])

    text = source[tokens[0].start : tokens[-1].end] if tokens else ""
    return Unknown(text)


def _collapse(terms: List[Expression], node: type) -> Expression:
    return terms[0] if len(terms) == 1 else node(tuple(terms))


def parse_condition(source: str) -> Expression:
    """Parse a condition string into an expression tree."""
    source = source.strip()
    tokens = tokenize(source)
    conjuncts: List[Expression] = []
    for and_group in _split(tokens, "AND"):
        disjuncts = [_parse_term(or_group, source) for or_group in _split(and_group, "OR")]
        conjuncts.append(_collapse(disjuncts, AnyOf))
    return _collapse(conjuncts, AllOf)


def evaluate_condition(source: str, context: Optional[ComponentContext] = None) -> bool:
    """Evaluate a condition string against a component context."""
    return parse_condition(source).evaluate(context or ComponentContext())
