"""WKT CRS parser for both WKT1 (OGC 01-009) and WKT2 (ISO 19162).

The buffer is tokenized, built into a tree of bracketed nodes, and the
EPSG codes are taken from each CRS node's *own* authority clause only::

    PROJCS["WGS 84 / UTM zone 33N",
        GEOGCS["WGS 84", ..., AUTHORITY["EPSG","4326"]],   <- nested, ignored
        ...,
        AUTHORITY["EPSG","32633"]]                          <- own, used

Compound CRSs yield a horizontal and a vertical code.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from pylascrs.core.crs import RawCrsCodes
from pylascrs.core.errors import MalformedWkt, UnsupportedCrsForm

logger = logging.getLogger(__name__)

WktValue = Union["WktNode", str, int, float]

_CONTEXT_CHARS = 20
_MAX_CODE_DIGITS = 10

_TOKEN_PATTERN = re.compile(
    r"(?P<space>\s+)"
    r"|(?P<keyword>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<number>[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
    r"|(?P<open>[\[(])"
    r"|(?P<close>[\])])"
    r"|(?P<comma>,)"
    r"|(?P<quote>\")"
)
_LEADING_KEYWORD = re.compile(r"\s*([A-Za-z_][A-Za-z0-9_]*)")
_BRACKET_PAIRS = {"[": "]", "(": ")"}


@dataclass(frozen=True)
class WktToken:
    kind: str  # keyword, string, number, open, close, comma
    text: str
    position: int


@dataclass
class WktNode:
    """A ``KEYWORD[arg, arg, ...]`` clause."""

    keyword: str
    position: int
    args: list[WktValue] = field(default_factory=list)
    bracket: str = "["

    @property
    def children(self) -> list[WktNode]:
        """Direct child clauses (string and number arguments excluded)."""
        return [a for a in self.args if isinstance(a, WktNode)]

    def child(self, keyword: str) -> WktNode | None:
        for c in self.children:
            if c.keyword == keyword:
                return c
        return None


# ── Dialects ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class WktRules:
    """Keywords that drive CRS resolution for one dialect."""

    authority: frozenset[str]
    horizontal: frozenset[str]
    vertical: frozenset[str]
    compound: frozenset[str]
    unsupported: frozenset[str]
    bound: frozenset[str] = frozenset()

    @property
    def crs_keywords(self) -> frozenset[str]:
        return (
            self.horizontal | self.vertical | self.compound
            | self.unsupported | self.bound
        )


class WktDialect(Enum):
    """WKT generations. The two use disjoint CRS keywords."""

    V1 = "wkt1"
    V2 = "wkt2"

    @property
    def rules(self) -> WktRules:
        return _RULES[self]


_RULES = {
    WktDialect.V1: WktRules(
        authority=frozenset({"AUTHORITY"}),
        horizontal=frozenset({"PROJCS", "GEOGCS", "GEOCCS"}),
        vertical=frozenset({"VERT_CS"}),
        compound=frozenset({"COMPD_CS"}),
        unsupported=frozenset({"LOCAL_CS", "FITTED_CS"}),
    ),
    WktDialect.V2: WktRules(
        authority=frozenset({"ID"}),
        horizontal=frozenset({
            "PROJCRS", "PROJECTEDCRS",
            "GEOGCRS", "GEOGRAPHICCRS",
            "GEODCRS", "GEODETICCRS",
        }),
        vertical=frozenset({"VERTCRS", "VERTICALCRS"}),
        compound=frozenset({"COMPOUNDCRS"}),
        unsupported=frozenset({
            "ENGCRS", "ENGINEERINGCRS",
            "PARAMETRICCRS", "TIMECRS",
            "DERIVEDPROJCRS",
        }),
        bound=frozenset({"BOUNDCRS"}),
    ),
}


def _context(text: str, position: int) -> str:
    return text[max(0, position - _CONTEXT_CHARS):position + _CONTEXT_CHARS]


def _decode(wkt: bytes | str) -> str:
    """Turn a VLR payload into text, dropping a byte order mark and the NUL terminator(s)."""
    if isinstance(wkt, str):
        text = wkt
    else:
        text = bytes(wkt).decode("utf-8", errors="replace")
    return text.removeprefix("\ufeff").rstrip("\x00 \t\r\n")


def detect_dialect(wkt: bytes | str) -> WktDialect:
    """Pick the WKT dialect from the leading CRS keyword.

    Raises:
        MalformedWkt: If the text does not start with a known CRS keyword.
    """
    text = _decode(wkt)
    m = _LEADING_KEYWORD.match(text)
    if not m:
        raise MalformedWkt("Expected a CRS keyword", 0, _context(text, 0))

    keyword = m.group(1).upper()
    for dialect in WktDialect:
        if keyword in dialect.rules.crs_keywords:
            logger.debug("Detected %s from leading keyword %s", dialect.value, keyword)
            return dialect
    raise MalformedWkt(
        f"Unknown CRS keyword '{m.group(1)}'", m.start(1), _context(text, m.start(1))
    )


# ── Tokenizer & tree ────────────────────────────────────────────────


def _read_string(text: str, start: int) -> tuple[str, int]:
    """Read a quoted string starting at the opening quote.

    A doubled quote (``""``) inside the string stands for a literal quote.
    Returns the string value and the position after the closing quote.
    """
    chars = []
    pos = start + 1
    while True:
        end = text.find('"', pos)
        if end < 0:
            raise MalformedWkt("Unterminated string", start, _context(text, start))
        chars.append(text[pos:end])
        if text.startswith('"', end + 1):
            chars.append('"')
            pos = end + 2
            continue
        return "".join(chars), end + 1


def tokenize_wkt(text: str) -> list[WktToken]:
    """Split WKT text into tokens.

    Raises:
        MalformedWkt: On unterminated strings or characters outside the grammar.
    """
    tokens: list[WktToken] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_PATTERN.match(text, pos)
        if m is None:
            raise MalformedWkt(
                f"Unexpected character {text[pos]!r}", pos, _context(text, pos)
            )
        kind = m.lastgroup
        if kind == "quote":
            value, end = _read_string(text, pos)
            tokens.append(WktToken("string", value, pos))
            pos = end
            continue
        if kind != "space":
            tokens.append(WktToken(kind, m.group(), pos))
        pos = m.end()
    return tokens


def _number(text: str) -> int | float:
    try:
        return int(text)
    except ValueError:
        return float(text)


def parse_wkt_tree(text: str) -> WktNode:
    """Build the clause tree of a WKT definition.

    Uses an explicit stack instead of recursion so deeply nested input
    cannot exhaust the interpreter stack.

    Raises:
        MalformedWkt: On any grammar violation, with the offending offset.
    """
    tokens = tokenize_wkt(text)
    if not tokens:
        raise MalformedWkt("Empty WKT", 0)

    stack: list[WktNode] = []
    root: WktNode | None = None
    expect_value = True
    just_opened = False
    i = 0

    while i < len(tokens):
        tok = tokens[i]
        if root is not None:
            raise MalformedWkt(
                "Unexpected content after the CRS definition",
                tok.position, _context(text, tok.position),
            )

        if tok.kind == "close" and (just_opened or not expect_value):
            if not stack:
                raise MalformedWkt(
                    "Unbalanced closing bracket", tok.position, _context(text, tok.position)
                )
            node = stack.pop()
            if _BRACKET_PAIRS[node.bracket] != tok.text:
                raise MalformedWkt(
                    f"Mismatched bracket: '{node.bracket}' closed by '{tok.text}'",
                    tok.position, _context(text, tok.position),
                )
            if not stack:
                root = node
            expect_value = False
            just_opened = False
            i += 1
            continue

        if expect_value:
            nxt = tokens[i + 1] if i + 1 < len(tokens) else None
            if tok.kind == "keyword" and nxt is not None and nxt.kind == "open":
                node = WktNode(tok.text.upper(), tok.position, bracket=nxt.text)
                if stack:
                    stack[-1].args.append(node)
                stack.append(node)
                just_opened = True
                i += 2
                continue
            if not stack:
                raise MalformedWkt(
                    "Expected a CRS clause", tok.position, _context(text, tok.position)
                )
            if tok.kind in ("keyword", "string"):
                stack[-1].args.append(tok.text)
            elif tok.kind == "number":
                stack[-1].args.append(_number(tok.text))
            else:
                raise MalformedWkt(
                    f"Expected a value, found '{tok.text}'",
                    tok.position, _context(text, tok.position),
                )
            expect_value = False
        elif tok.kind == "comma":
            expect_value = True
        else:
            raise MalformedWkt(
                f"Expected ',' or closing bracket, found '{tok.text}'",
                tok.position, _context(text, tok.position),
            )
        just_opened = False
        i += 1

    if root is None:
        raise MalformedWkt(
            "Unexpected end of input", len(text), _context(text, len(text))
        )
    return root


# ── CRS resolution ──────────────────────────────────────────────────


def _as_code(value: WktValue) -> int | None:
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 0 else None
    if isinstance(value, str):
        digits = value.strip()
        if digits.isascii() and digits.isdigit() and len(digits) <= _MAX_CODE_DIGITS:
            return int(digits)
    return None


def own_epsg_code(node: WktNode, rules: WktRules) -> int | None:
    """EPSG code from the node's own authority clause.

    Only direct children are looked at; authority clauses of nested
    datums, ellipsoids or base CRSs never match.
    """
    for child in node.children:
        if child.keyword not in rules.authority or len(child.args) < 2:
            continue
        name, code = child.args[0], child.args[1]
        if not isinstance(name, str) or name.upper() != "EPSG":
            continue
        parsed = _as_code(code)
        if parsed is not None:
            return parsed
    return None


def _has_authority(root: WktNode, rules: WktRules) -> bool:
    pending = [root]
    while pending:
        node = pending.pop()
        if node.keyword in rules.authority:
            return True
        pending.extend(node.children)
    return False


def _unwrap_bound(node: WktNode, rules: WktRules) -> WktNode:
    source = node.child("SOURCECRS")
    crs = [c for c in source.children if c.keyword in rules.crs_keywords] if source else []
    if not crs:
        raise UnsupportedCrsForm(f"{node.keyword} without a source CRS")
    logger.debug("Using source CRS %s of %s", crs[0].keyword, node.keyword)
    return crs[0]


def resolve_crs_codes(root: WktNode, dialect: WktDialect) -> RawCrsCodes:
    """Extract the raw horizontal/vertical codes from a parsed WKT tree.

    Raises:
        UnsupportedCrsForm: For local/engineering CRSs, lone vertical CRSs,
            odd compound layouts and definitions with no authority at all.
    """
    rules = dialect.rules
    node = _unwrap_bound(root, rules) if root.keyword in rules.bound else root
    kind = node.keyword

    if kind in rules.compound:
        parts = [
            _unwrap_bound(c, rules) if c.keyword in rules.bound else c
            for c in node.children
            if c.keyword in rules.crs_keywords
        ]
        if len(parts) != 2:
            raise UnsupportedCrsForm(
                f"{kind} with {len(parts)} component CRSs, expected 2"
            )
        horizontal, vertical = parts
        if horizontal.keyword not in rules.horizontal or vertical.keyword not in rules.vertical:
            raise UnsupportedCrsForm(
                f"{kind} of {horizontal.keyword} and {vertical.keyword} is not "
                "a horizontal + vertical pair"
            )
        codes = RawCrsCodes(
            own_epsg_code(horizontal, rules), own_epsg_code(vertical, rules)
        )
    elif kind in rules.horizontal:
        codes = RawCrsCodes(own_epsg_code(node, rules), None)
    elif kind in rules.vertical:
        raise UnsupportedCrsForm(f"{kind} without a horizontal CRS")
    else:
        raise UnsupportedCrsForm(f"{kind} CRS is not supported")

    if codes.horizontal is None and codes.vertical is None and not _has_authority(node, rules):
        raise UnsupportedCrsForm(f"User-defined {kind} without any authority")

    logger.debug("WKT %s codes: %s", kind, codes)
    return codes


def parse_wkt_crs(wkt: bytes | str) -> RawCrsCodes:
    """Parse a WKT CRS buffer of either dialect into raw EPSG codes.

    Raises:
        MalformedWkt: Grammar errors.
        UnsupportedCrsForm: Recognized but unhandled CRS forms.
    """
    text = _decode(wkt)
    dialect = detect_dialect(text)
    root = parse_wkt_tree(text)
    return resolve_crs_codes(root, dialect)
