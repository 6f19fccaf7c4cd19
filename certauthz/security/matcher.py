# certauthz/security/matcher.py
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List

from certauthz.config import AuthzMode, MtlsConfig, validate_config
from certauthz.errors import PatternCompileFailure
from certauthz.security.patterns import compile_domains

logger = logging.getLogger(__name__)

INLINE_FLAGS_RE = re.compile(r"\A\(\?[aiLmsux]+\)")


def _top_level_branches(expression: str) -> List[str]:
    """Split on `|` outside groups and character classes."""
    branches, start, depth, i = [], 0, 0, 0
    in_class = False
    while i < len(expression):
        c = expression[i]
        if c == "\\":
            i += 2
            continue
        if in_class:
            if c == "]":
                in_class = False
        elif c == "[":
            in_class = True
            # a leading `]` (after an optional `^`) is literal
            if expression[i + 1:i + 2] == "^":
                i += 1
            if expression[i + 1:i + 2] == "]":
                i += 1
        elif c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
        elif c == "|" and depth == 0:
            branches.append(expression[start:i])
            start = i + 1
        i += 1
    branches.append(expression[start:])
    return branches


def _is_anchored(branch: str) -> bool:
    branch = INLINE_FLAGS_RE.sub("", branch)
    if not branch.startswith(("^", "\\A")):
        return False
    if branch.endswith("\\Z"):
        body = branch[:-2]
    elif branch.endswith("$"):
        body = branch[:-1]
    else:
        return False
    # an odd run of backslashes escapes the anchor
    return (len(body) - len(body.rstrip("\\"))) % 2 == 0


@dataclass(frozen=True)
class Matcher:
    """One compiled allow-list expression. Read-only once built."""
    pattern: "re.Pattern[str]"
    mode: AuthzMode

    @classmethod
    def from_domains(cls, domains: Iterable[str]) -> "Matcher":
        return cls(compile_domains(domains), AuthzMode.DOMAINS)

    @classmethod
    def from_regex(cls, expression: str) -> "Matcher":
        """
        Compile an operator expression unchanged: no anchors, no case folding.

        ``example.org`` therefore also matches ``example.org.attacker.com``.
        """
        try:
            compiled = re.compile(expression)
        except re.error as e:
            raise PatternCompileFailure(expression, str(e)) from e
        if not all(_is_anchored(b) for b in _top_level_branches(expression)):
            logger.warning(
                "mTLS regex %r has a branch not enclosed in ^...$ and may match SAN substrings",
                expression,
            )
        return cls(compiled, AuthzMode.REGEX)

    @classmethod
    def from_config(cls, config: MtlsConfig) -> "Matcher":
        if validate_config(config) is AuthzMode.REGEX:
            return cls.from_regex(config.regex)
        return cls.from_domains(config.domains)

    def matches(self, name: str) -> bool:
        return self.pattern.search(name) is not None
