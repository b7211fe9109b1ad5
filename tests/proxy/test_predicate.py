import pytest

from proxy_provider import HostMatchPredicate, PatternCompileError, ProxyAddress, RegexShouldProxyPredicate


def test_handle_wildcard_in_non_proxy_hosts():
    pred = RegexShouldProxyPredicate.from_wildcarded_pattern("*.foo.com")

    assert pred.test(ProxyAddress("some.other.com", 8080)) is True, "Should proxy"
    assert pred.test(ProxyAddress("some.foo.com", 8080)) is False, "Should not proxy"


def test_plain_host_strings_are_accepted():
    pred = HostMatchPredicate.from_wildcarded_pattern("*.foo.com")

    assert pred.test("some.other.com") is True
    assert pred.test("some.foo.com") is False


def test_match_is_anchored():
    pred = HostMatchPredicate.from_wildcarded_pattern("foo.com")

    assert pred.test("foo.com") is False
    assert pred.test("www.foo.com") is True
    assert pred.test("foo.com.evil.net") is True


def test_dots_are_literal():
    pred = HostMatchPredicate.from_wildcarded_pattern("foo.com")
    assert pred.test("fooxcom") is True


def test_match_is_case_insensitive():
    pred = HostMatchPredicate.from_wildcarded_pattern("*.Foo.COM")
    assert pred.test("api.foo.com") is False


@pytest.mark.parametrize("pattern", ["localhost|127.*|[::1]", "localhost, 127.*, [::1]", "| localhost ||127.*|[::1]|"])
def test_multiple_entries_are_or_ed(pattern):
    pred = HostMatchPredicate.from_wildcarded_pattern(pattern)

    assert pred.test("localhost") is False
    assert pred.test("127.0.0.1") is False
    assert pred.test("::1") is False
    assert pred.test("[::1]") is False
    assert pred.test("example.com") is True


def test_resolved_address_ip_is_matched():
    pred = HostMatchPredicate.from_wildcarded_pattern("10.*")

    assert pred.test(ProxyAddress.create_resolved("intranet.lan", 80, "10.0.0.7")) is False
    assert pred.test(ProxyAddress.create_unresolved("intranet.lan", 80)) is True


@pytest.mark.parametrize("pattern", [None, "", "  ", "|,|"])
def test_empty_pattern_always_proxies(pattern):
    pred = HostMatchPredicate.from_wildcarded_pattern(pattern)

    assert pred.test("localhost") is True
    assert pred.test("") is True


@pytest.mark.parametrize("address", [None, 8080, ("some.other.com", 8080), b"some.other.com"])
def test_unsupported_address_types_are_not_proxied(address):
    pred = HostMatchPredicate.from_wildcarded_pattern("*.foo.com")
    assert pred.test(address) is False


def test_star_alone_bypasses_everything():
    pred = HostMatchPredicate.from_wildcarded_pattern("*")
    assert pred.test("anything.example") is False


@pytest.mark.parametrize("pattern", ["foo bar.com", "10.0.0.0/8", "exa$mple.com", "(foo)"])
def test_malformed_pattern_fails_at_construction(pattern):
    with pytest.raises(PatternCompileError):
        HostMatchPredicate.from_wildcarded_pattern(pattern)


def test_non_string_pattern_fails():
    with pytest.raises(PatternCompileError):
        HostMatchPredicate.from_wildcarded_pattern(42)


def test_predicates_compare_by_compiled_pattern():
    first = HostMatchPredicate.from_wildcarded_pattern("*.foo.com|localhost")
    second = HostMatchPredicate.from_wildcarded_pattern("*.foo.com | localhost")

    assert first == second
    assert hash(first) == hash(second)
    assert first != HostMatchPredicate.from_wildcarded_pattern("*.bar.com")


def test_str_is_regex_source():
    pred = HostMatchPredicate.from_wildcarded_pattern("*.foo.com")
    assert str(pred) == r".*\.foo\.com"
    assert pred.source == "*.foo.com"
