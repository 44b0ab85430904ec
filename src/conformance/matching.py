import re
from enum import Enum


class MatchMode(Enum):
    """How an observed value is compared with an expectation"""
    EQUALS = "equals"
    CONTAINS = "contains"
    REGEX = "regex"
    NOT_EQUALS = "not_equals"
    NOT_CONTAINS = "not_contains"
    NOT_REGEX = "not_regex"

    @property
    def negated(self):
        return self in (MatchMode.NOT_EQUALS, MatchMode.NOT_CONTAINS, MatchMode.NOT_REGEX)


_POSITIVE = {
    MatchMode.NOT_EQUALS: MatchMode.EQUALS,
    MatchMode.NOT_CONTAINS: MatchMode.CONTAINS,
    MatchMode.NOT_REGEX: MatchMode.REGEX,
}


class Matcher:
    def __init__(self, expected, mode=MatchMode.EQUALS):
        self.expected = expected
        self.mode = MatchMode(mode)
        self._pattern = re.compile(expected) if self.mode in (MatchMode.REGEX, MatchMode.NOT_REGEX) else None

    @staticmethod
    def coerce(value, mode=MatchMode.EQUALS):
        """Matchers pass through; anything else becomes a Matcher with the given default mode."""
        if isinstance(value, Matcher):
            return value
        return Matcher(value, mode)

    def matches(self, value):
        positive = self._matches_positive(_POSITIVE.get(self.mode, self.mode), value)
        return not positive if self.mode.negated else positive

    def find(self, value):
        """
        Return the matching part of ``value``, or None when it does not match.

        REGEX returns the matched substring; every other mode returns the value itself.
        """
        if not self.matches(value):
            return None
        if self.mode == MatchMode.REGEX:
            return self._pattern.search(self._text(value)).group(0)
        return value

    def _matches_positive(self, mode, value):
        if mode == MatchMode.EQUALS:
            if not isinstance(self.expected, str):
                return value == self.expected
            return self._text(value) == self.expected

        text = self._text(value)
        if mode == MatchMode.CONTAINS:
            return str(self.expected) in text
        return self._pattern.search(text) is not None

    @staticmethod
    def _text(value):
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    def __eq__(self, other):
        return isinstance(other, Matcher) and (self.expected, self.mode) == (other.expected, other.mode)

    def __hash__(self):
        return hash((str(self.expected), self.mode))

    def __repr__(self):
        return f"Matcher({self.expected!r}, {self.mode.name})"

    def __str__(self):
        return f"{self.mode.value.replace('_', ' ')} {self.expected!r}"


class AllOf(Matcher):
    """Matches when every inner matcher does; used to check several lines of one block at once."""

    def __init__(self, matchers, mode=MatchMode.CONTAINS):
        if isinstance(matchers, (str, Matcher)):
            matchers = [matchers]
        self.matchers = [Matcher.coerce(m, mode) for m in matchers]
        if not self.matchers:
            raise ValueError("At least one expectation is required")
        self.expected = [m.expected for m in self.matchers]
        self.mode = MatchMode(mode)
        self._pattern = None

    def failures(self, value):
        return [str(m) for m in self.matchers if not m.matches(value)]

    def matches(self, value):
        return not self.failures(value)

    def find(self, value):
        return value if self.matches(value) else None

    def __eq__(self, other):
        return isinstance(other, AllOf) and self.matchers == other.matchers

    def __hash__(self):
        return hash(tuple(self.matchers))

    def __repr__(self):
        return f"AllOf({self.matchers!r})"

    def __str__(self):
        return " and ".join(str(m) for m in self.matchers)
