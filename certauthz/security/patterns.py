# certauthz/security/patterns.py
"""
Domain pattern compiler.

A domain pattern such as ``*.example.org`` is turned into a regular expression
in a few small passes:

    validate -> escape -> substitute wildcards -> anchor -> join

Every `*` becomes ``[^.]+``, i.e. one or more characters of a single DNS label.
Wildcards are not restricted to whole labels, so ``exam*ple.org`` is accepted
and matches ``examqwerple.org``.

Each translated pattern is anchored on its own before joining. Anchoring the
joined alternation once would leave the first branch open at the end and the
last branch open at the start (``^a|b$``), letting ``example.org`` match
``example.org.attacker.com``.
"""
import re
from typing import Iterable, List

from certauthz.errors import InvalidDomainCharacter, NoModeSpecified, PatternCompileFailure

INVALID_DOMAIN_RE = re.compile(r"[^a-z0-9\-.*]", re.IGNORECASE | re.ASCII)
WILDCARD = "*"
LABEL_RE = r"[^.]+"


def validate_domain(pattern: str) -> str:
    if INVALID_DOMAIN_RE.search(pattern):
        raise InvalidDomainCharacter(pattern)
    return pattern


def escape_domain(pattern: str) -> List[str]:
    """Split on the wildcard marker and escape the literal pieces in between."""
    return [re.escape(piece) for piece in pattern.split(WILDCARD)]


def substitute_wildcards(pieces: List[str]) -> str:
    return LABEL_RE.join(pieces)


def anchor(expression: str) -> str:
    # \A and \Z: `$` would also accept a trailing newline
    return rf"(?i:\A{expression}\Z)"


def translate_domain(pattern: str) -> str:
    return anchor(substitute_wildcards(escape_domain(validate_domain(pattern))))


def join_alternatives(expressions: Iterable[str]) -> str:
    return "|".join(expressions)


def compile_domains(patterns: Iterable[str]) -> "re.Pattern[str]":
    """
    Validate, translate and join domain patterns into one compiled expression.

    Validation runs in list order and stops at the first bad pattern.
    Case folding is limited to ASCII, the only alphabet a pattern may contain.
    """
    translated = [translate_domain(p) for p in patterns]
    if not translated:
        raise NoModeSpecified()
    expression = join_alternatives(translated)
    try:
        return re.compile(expression, re.ASCII)
    except re.error as e:
        raise PatternCompileFailure(expression, str(e)) from e
