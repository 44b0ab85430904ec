import pytest

from conformance import AllOf, Matcher, MatchMode


@pytest.mark.parametrize("mode, expected, value, result", [
    (MatchMode.EQUALS, "True", "True", True),
    (MatchMode.EQUALS, "True", "True False", False),
    (MatchMode.EQUALS, 3, 3, True),
    (MatchMode.EQUALS, 3, "3", False),
    (MatchMode.CONTAINS, "timeout server 5s", "backend x\n  timeout server 5s", True),
    (MatchMode.CONTAINS, "x", None, False),
    (MatchMode.REGEX, r"server pod-\w+", "  server pod-abc 10.0.0.1:8080", True),
    (MatchMode.NOT_EQUALS, "True", "False", True),
    (MatchMode.NOT_CONTAINS, "option forwardfor", "backend x", True),
    (MatchMode.NOT_CONTAINS, "option forwardfor", "  option forwardfor", False),
    (MatchMode.NOT_REGEX, r"maxconn \d+", "", True),
])
def test_matches(mode, expected, value, result):
    assert Matcher(expected, mode).matches(value) is result


def test_find_returns_matched_part():
    assert Matcher(r"\d+\.\d+\.\d+\.\d+", MatchMode.REGEX).find("endpoint 10.128.2.15:8080") == "10.128.2.15"
    assert Matcher("5s", MatchMode.CONTAINS).find("timeout 5s") == "timeout 5s"
    assert Matcher("5s", MatchMode.CONTAINS).find("timeout 10s") is None


def test_coerce_keeps_matchers():
    matcher = Matcher("abc", MatchMode.REGEX)
    assert Matcher.coerce(matcher, MatchMode.EQUALS) is matcher
    assert Matcher.coerce("abc", MatchMode.CONTAINS) == Matcher("abc", MatchMode.CONTAINS)
    assert Matcher.coerce("abc", "regex").mode == MatchMode.REGEX


def test_describe():
    assert str(Matcher("abc", MatchMode.NOT_CONTAINS)) == "not contains 'abc'"
    assert repr(Matcher("abc")) == "Matcher('abc', EQUALS)"


def test_all_of():
    block = "backend be_http:ns:route\n  balance random\n  timeout server 5s"
    expected = AllOf(["balance random", "timeout server 5s"])
    assert expected.matches(block)
    assert expected.find(block) == block

    missing = AllOf(["balance random", "option httpchk"])
    assert not missing.matches(block)
    assert missing.failures(block) == ["contains 'option httpchk'"]

    absent = AllOf([r"cookie \w+", "httpchk"], MatchMode.NOT_REGEX)
    assert absent.matches(block)
    assert str(absent) == "not regex 'cookie \\\\w+' and not regex 'httpchk'"


def test_all_of_requires_expectations():
    with pytest.raises(ValueError):
        AllOf([])
