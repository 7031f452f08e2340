"""
AST-based parsing and canonicalization for truth-functional formulas.

This module provides the structure-aware pipeline used by the proof checker:
1. Normalize the surface notation (Unicode and ASCII aliases -> one alphabet)
2. Parse into an immutable Abstract Syntax Tree (AST)
3. Canonicalize the AST (flatten + sort commutative chains, order Iff sides)
4. Compare canonical forms structurally

Two formulas are interchangeable for rule checking when their canonical forms
are structurally equal, i.e. they differ only by associativity/commutativity
of conjunction and disjunction or by the orientation of a biconditional.
Negation and implication are never reordered, and no logical simplification
(double negation, idempotency) is applied.

Usage:
    from formula.ast_canon import parse_formula, canonicalize, equals_canonical

    a = parse_formula("(A ∧ B) → C")
    b = parse_formula("(B & A) -> C")
    assert equals_canonical(a, b)
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from functools import total_ordering
from typing import Dict, List, Optional, Tuple, Union


PLACEHOLDER_ATOM = "?"


class FormulaSyntaxError(ValueError):
    """Raised when formula text cannot be parsed."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


# ---------------------------------------------------------------------------
# Symbol aliases -> parser alphabet
# ---------------------------------------------------------------------------

# Order matters: longer aliases must be rewritten before their prefixes.
_SYMBOL_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("<=>", "<->"),
    ("↔", "<->"),
    ("⇔", "<->"),
    ("=>", "->"),
    ("→", "->"),
    ("⇒", "->"),
    ("/\\", "^"),
    ("\\/", " v "),
    ("∧", "^"),
    ("&", "^"),
    ("||", " v "),
    ("∨", " v "),
    ("¬", "!"),
    ("~", "!"),
    ("∀", "forall"),
    ("∃", "exists"),
)


def normalize_symbols(s: str) -> str:
    """Rewrite every accepted connective alias to the parser alphabet."""
    for alias, replacement in _SYMBOL_ALIASES:
        if alias in s:
            s = s.replace(alias, replacement)
    return s


# ---------------------------------------------------------------------------
# AST Node Types
# ---------------------------------------------------------------------------

@total_ordering
@dataclass(frozen=True, slots=True)
class Expr(ABC):
    """Base class for formula AST nodes."""

    @abstractmethod
    def key(self) -> str:
        """Injective serialization used as the canonical sort key."""
        ...

    @abstractmethod
    def to_canonical(self) -> str:
        """Serialize to a compact ASCII string that parses back to self."""
        ...

    def __lt__(self, other: "Expr") -> bool:
        return self.key() < other.key()

    def __str__(self) -> str:
        return self.to_canonical()


def _wrap(expr: Expr, text: str) -> str:
    if isinstance(expr, (And, Or, Imp, Iff)):
        return f"({text})"
    return text


@dataclass(frozen=True, slots=True)
class Var(Expr):
    """Atomic proposition (sentence letter or opaque predicate atom)."""
    name: str

    def key(self) -> str:
        return f"v:{self.name}"

    def to_canonical(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Not(Expr):
    """Negation."""
    operand: Expr

    def key(self) -> str:
        return f"n:({self.operand.key()})"

    def to_canonical(self) -> str:
        return "!" + _wrap(self.operand, self.operand.to_canonical())


@dataclass(frozen=True, slots=True)
class _Binary(Expr):
    left: Expr
    right: Expr

    _TAG = ""
    _SEP = ""
    _ASCII = ""

    def key(self) -> str:
        return f"{self._TAG}:({self.left.key()}){self._SEP}({self.right.key()})"

    def to_canonical(self) -> str:
        left = _wrap(self.left, self.left.to_canonical())
        right = _wrap(self.right, self.right.to_canonical())
        return f"{left} {self._ASCII} {right}"


@dataclass(frozen=True, slots=True)
class And(_Binary):
    """Conjunction."""
    _TAG = "a"
    _SEP = ","
    _ASCII = "^"


@dataclass(frozen=True, slots=True)
class Or(_Binary):
    """Disjunction."""
    _TAG = "o"
    _SEP = ","
    _ASCII = "v"


@dataclass(frozen=True, slots=True)
class Imp(_Binary):
    """Implication (right-associative when parsed)."""
    _TAG = "i"
    _SEP = "->"
    _ASCII = "->"


@dataclass(frozen=True, slots=True)
class Iff(_Binary):
    """Biconditional."""
    _TAG = "b"
    _SEP = "<->"
    _ASCII = "<->"


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

class TokenKind(Enum):
    IDENT = auto()
    NOT = auto()
    AND = auto()
    OR = auto()
    IMPLIES = auto()
    IFF = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    EOF = auto()


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: str
    pos: int


_TOKEN_PATTERNS = [
    (r"[A-Za-z][A-Za-z0-9_]*", TokenKind.IDENT),
    (r"!", TokenKind.NOT),
    (r"\^", TokenKind.AND),
    (r"<->", TokenKind.IFF),
    (r"->", TokenKind.IMPLIES),
    (r"\(", TokenKind.LPAREN),
    (r"\)", TokenKind.RPAREN),
    (r",", TokenKind.COMMA),
    (r"\s+", None),  # Skip whitespace
]

_COMPILED_PATTERNS = [(re.compile(p), k) for p, k in _TOKEN_PATTERNS]

# Quantifier prefixes (forallx, existsy) never start a predicate atom.
_QUANTIFIER_PREFIX_RE = re.compile(r"^(forall|exists)[A-Za-z]$")


def tokenize(s: str, *, lenient: bool = False) -> List[Token]:
    """Tokenize a formula already rewritten by normalize_symbols()."""
    tokens: List[Token] = []
    pos = 0
    while pos < len(s):
        for pattern, kind in _COMPILED_PATTERNS:
            m = pattern.match(s, pos)
            if m:
                if kind is TokenKind.IDENT and m.group() == "v":
                    tokens.append(Token(TokenKind.OR, "v", pos))
                elif kind is not None:
                    tokens.append(Token(kind, m.group(), pos))
                pos = m.end()
                break
        else:
            if not lenient:
                raise FormulaSyntaxError(
                    f"Unexpected character {s[pos]!r} at position {pos}", pos
                )
            pos += 1
    tokens.append(Token(TokenKind.EOF, "", pos))
    return tokens


# ---------------------------------------------------------------------------
# Recursive Descent Parser
# ---------------------------------------------------------------------------

class Parser:
    """
    Recursive descent parser.

        expr := iff
        iff  := imp ( '<->' imp )*
        imp  := or ( '->' imp )?
        or   := and ( 'v' and )*
        and  := not ( '^' not )*
        not  := '!' not | atom
        atom := ident [ '(' ident ( ',' ident )* ')' ] | '(' expr ')'
    """

    def __init__(self, tokens: List[Token], *, lenient: bool = False):
        self.tokens = tokens
        self.pos = 0
        self.lenient = lenient

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int) -> Token:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def consume(self, kind: TokenKind) -> Token:
        tok = self.current()
        if tok.kind != kind:
            raise FormulaSyntaxError(
                f"Expected {kind.name}, got {tok.kind.name} at position {tok.pos}", tok.pos
            )
        self.pos += 1
        return tok

    def parse(self) -> Expr:
        if self.current().kind == TokenKind.EOF:
            raise FormulaSyntaxError("Empty formula", 0)
        expr = self.parse_iff()
        tok = self.current()
        if tok.kind != TokenKind.EOF:
            raise FormulaSyntaxError(f"Unexpected {tok.value!r} at position {tok.pos}", tok.pos)
        return expr

    def parse_iff(self) -> Expr:
        """Parse biconditional (lowest precedence)."""
        left = self.parse_implies()
        while self.current().kind == TokenKind.IFF:
            self.consume(TokenKind.IFF)
            right = self.parse_implies()
            left = Iff(left, right)
        return left

    def parse_implies(self) -> Expr:
        """Parse implication (right-associative)."""
        left = self.parse_or()
        if self.current().kind == TokenKind.IMPLIES:
            self.consume(TokenKind.IMPLIES)
            right = self.parse_implies()
            return Imp(left, right)
        return left

    def parse_or(self) -> Expr:
        left = self.parse_and()
        while self.current().kind == TokenKind.OR:
            self.consume(TokenKind.OR)
            left = Or(left, self.parse_and())
        return left

    def parse_and(self) -> Expr:
        left = self.parse_unary()
        while self.current().kind == TokenKind.AND:
            self.consume(TokenKind.AND)
            left = And(left, self.parse_unary())
        return left

    def parse_unary(self) -> Expr:
        if self.current().kind == TokenKind.NOT:
            self.consume(TokenKind.NOT)
            return Not(self.parse_unary())
        return self.parse_primary()

    def parse_primary(self) -> Expr:
        """Parse atoms, predicate atoms and parenthesized expressions."""
        tok = self.current()
        if tok.kind == TokenKind.IDENT:
            self.consume(TokenKind.IDENT)
            args = self._predicate_args(tok.value)
            if args is not None:
                return Var(f"{tok.value}({','.join(args)})")
            return Var(tok.value)
        if tok.kind == TokenKind.LPAREN:
            self.consume(TokenKind.LPAREN)
            expr = self.parse_iff()
            self.consume(TokenKind.RPAREN)
            return expr
        if self.lenient:
            if tok.kind != TokenKind.EOF:
                self.pos += 1
            return Var(PLACEHOLDER_ATOM)
        if tok.kind == TokenKind.EOF:
            raise FormulaSyntaxError(f"Unexpected end of formula at position {tok.pos}", tok.pos)
        raise FormulaSyntaxError(f"Unexpected {tok.value!r} at position {tok.pos}", tok.pos)

    def _predicate_args(self, name: str) -> Optional[List[str]]:
        """Consume `(a,b,...)` after an identifier if it is an argument list."""
        if self.current().kind != TokenKind.LPAREN or _QUANTIFIER_PREFIX_RE.match(name):
            return None
        args: List[str] = []
        offset = 1
        while True:
            tok = self.peek(offset)
            if tok.kind != TokenKind.IDENT or tok.value == "v":
                return None
            args.append(tok.value)
            sep = self.peek(offset + 1)
            if sep.kind == TokenKind.RPAREN:
                self.pos += offset + 2
                return args
            if sep.kind != TokenKind.COMMA:
                return None
            offset += 2


def parse_formula(s: str, *, lenient: bool = False) -> Expr:
    """
    Parse formula text into an AST.

    Strict mode raises FormulaSyntaxError. Lenient mode reproduces the legacy
    placeholder behaviour: unknown characters are skipped and whatever cannot
    be parsed becomes the atom "?".
    """
    text = normalize_symbols(s or "")
    try:
        tokens = tokenize(text, lenient=lenient)
        return Parser(tokens, lenient=lenient).parse()
    except FormulaSyntaxError:
        if lenient:
            return Var(PLACEHOLDER_ATOM)
        raise


class ParseCache:
    """
    Memo of parse outcomes keyed by raw source text.

    Owned by exactly one validation call; failures are memoized as well so a
    formula cited many times is only parsed once.
    """

    def __init__(self, *, lenient: bool = False):
        self._lenient = lenient
        self._entries: Dict[str, Union[Expr, FormulaSyntaxError]] = {}

    def _lookup(self, text: Optional[str]) -> Union[Expr, FormulaSyntaxError]:
        key = text or ""
        entry = self._entries.get(key)
        if entry is None:
            try:
                entry = parse_formula(key, lenient=self._lenient)
            except FormulaSyntaxError as exc:
                entry = exc
            self._entries[key] = entry
        return entry

    def parse(self, text: Optional[str]) -> Expr:
        entry = self._lookup(text)
        if isinstance(entry, FormulaSyntaxError):
            raise entry
        return entry

    def try_parse(self, text: Optional[str]) -> Optional[Expr]:
        entry = self._lookup(text)
        return None if isinstance(entry, FormulaSyntaxError) else entry

    def error_for(self, text: Optional[str]) -> Optional[FormulaSyntaxError]:
        entry = self._lookup(text)
        return entry if isinstance(entry, FormulaSyntaxError) else None

    def __contains__(self, text: object) -> bool:
        return text in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------

def _flatten(expr: Expr, kind: type, acc: List[Expr]) -> None:
    if type(expr) is kind:
        _flatten(expr.left, kind, acc)
        _flatten(expr.right, kind, acc)
    else:
        acc.append(expr)


def _build_left_assoc(kind: type, nodes: List[Expr]) -> Expr:
    current = nodes[0]
    for node in nodes[1:]:
        current = kind(current, node)
    return current


def canonicalize(expr: Expr) -> Expr:
    """
    Canonicalize an AST.

    Transformations:
    1. Flatten And/Or chains of the same connective
    2. Canonicalize each operand, sort by key(), rebuild left-associatively
    3. Order the two sides of Iff by key()
    4. Recurse structurally through Not and Imp without reordering
    """
    if isinstance(expr, Var):
        return expr

    if isinstance(expr, Not):
        return Not(canonicalize(expr.operand))

    if isinstance(expr, Imp):
        return Imp(canonicalize(expr.left), canonicalize(expr.right))

    if isinstance(expr, Iff):
        left = canonicalize(expr.left)
        right = canonicalize(expr.right)
        if right < left:
            left, right = right, left
        return Iff(left, right)

    if isinstance(expr, (And, Or)):
        kind = type(expr)
        parts: List[Expr] = []
        _flatten(expr, kind, parts)
        return _build_left_assoc(kind, sorted(canonicalize(p) for p in parts))

    raise TypeError(f"Unknown expression type: {type(expr)}")


def structural_equal(a: Expr, b: Expr) -> bool:
    return a == b


def equals_canonical(a: Optional[Expr], b: Optional[Expr]) -> bool:
    """True when both formulas exist and their canonical forms coincide."""
    if a is None or b is None:
        return False
    return structural_equal(canonicalize(a), canonicalize(b))


def canonical_key(expr: Expr) -> str:
    return canonicalize(expr).key()


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

__all__ = [
    # AST types
    "Expr",
    "Var",
    "Not",
    "And",
    "Or",
    "Imp",
    "Iff",
    "PLACEHOLDER_ATOM",
    # Parsing
    "FormulaSyntaxError",
    "normalize_symbols",
    "tokenize",
    "Token",
    "TokenKind",
    "Parser",
    "parse_formula",
    "ParseCache",
    # Canonicalization
    "canonicalize",
    "structural_equal",
    "equals_canonical",
    "canonical_key",
]
