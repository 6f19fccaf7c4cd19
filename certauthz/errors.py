# certauthz/errors.py
"""Configuration errors. All of them are raised while building a gate, never per request."""


class ConfigError(ValueError):
    """Base exception for an unusable mTLS authorization configuration."""
    pass


class BothModesSpecified(ConfigError):
    """Raised when both a regex and a domain list are configured."""

    def __init__(self):
        super().__init__("You must specify either a regex or a domain list, not both")


class NoModeSpecified(ConfigError):
    """Raised when neither a regex nor a domain list is configured."""

    def __init__(self):
        super().__init__("You must specify either a regex or a domain list")


class InvalidDomainCharacter(ConfigError):
    """Raised when a domain pattern contains a character outside [a-z0-9-.*]."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"Invalid characters in domain name: {pattern}")


class PatternCompileFailure(ConfigError):
    """Raised when the assembled or operator-supplied expression does not compile."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        super().__init__(f"Cannot compile {expression!r}: {reason}")
