import pytest

from passwordgate.blocklist import canonical_terms, match_blocklist, term_tolerance
from passwordgate.errors import PolicyConfigurationError


def test_substring_match_reports_term():
    r = match_blocklist("password123", ["password"])
    assert r.valid is False
    assert r.errors == ('Password contains a substring too similar to: "password".',)


def test_unrelated_password_is_valid():
    r = match_blocklist("secret", ["password"])
    assert r.valid is True
    assert r.errors == ()


def test_fuzzy_variation_is_caught():
    assert match_blocklist("p@ssw0rd", ["password"]).valid is False
    assert match_blocklist("myp@ssword", ["password"], matching_sensitivity=0.3).valid is False


def test_match_is_case_insensitive():
    assert match_blocklist("MyPASSWORD", ["Password"]).valid is False


def test_short_term_needs_exact_match():
    # tolerance 1 for a 1-character term: fuzzy scanning would hit everything
    assert match_blocklist("mypassword", ["b"], matching_sensitivity=1).valid is True
    assert match_blocklist("B", ["b"], matching_sensitivity=1).valid is False


def test_empty_blocklists_are_valid():
    assert match_blocklist("anything", []).valid is True
    assert match_blocklist("anything", None).valid is True
    assert match_blocklist("anything", ["", "   "]).valid is True


def test_terms_are_deduplicated_in_first_seen_order():
    assert canonical_terms(["Password", " password ", "PASSWORD", "admin"]) == ["password", "admin"]
    r = match_blocklist("admin-password", ["Password", "password", "ADMIN"])
    assert r.errors == (
        'Password contains a substring too similar to: "password".',
        'Password contains a substring too similar to: "admin".',
    )


def test_term_longer_than_password_is_not_an_error():
    r = match_blocklist("abc", ["correcthorsebattery"])
    assert r.valid is True


def test_error_limit_stops_scanning():
    seen = []

    def tolerance(term, password):
        seen.append(term)
        return 0

    r = match_blocklist("password", ["pass", "word", "ssw"], custom_distance_calculator=tolerance, error_limit=1)
    assert r.errors == ('Password contains a substring too similar to: "pass".',)
    assert seen == ["pass"]


def test_windows_are_grapheme_indexed():
    # precomposed term against a decomposed password
    r = match_blocklist("xxcafe\u0301yy", ["caf\u00e9"], matching_sensitivity=0)
    assert r.valid is False
    r = match_blocklist("Pä123", ["pä", "123"])
    assert len(r.errors) == 2


def test_trimming_controls_term_matching():
    assert match_blocklist("mypassword", ["  password"], matching_sensitivity=0).valid is False
    r = match_blocklist("mypassword", ["  password"], matching_sensitivity=0, trim_whitespace=False)
    assert r.valid is True


def test_derived_tolerance_is_clamped():
    assert term_tolerance("password", "x") == 2
    assert term_tolerance("a" * 40, "x") == 5
    assert term_tolerance("a" * 40, "x", max_edit_distance=3) == 3
    assert term_tolerance("abc", "x", matching_sensitivity=0) == 0


def test_custom_tolerance_is_floored_and_clamped():
    assert term_tolerance("password", "x", custom_distance_calculator=lambda t, p: -3) == 0
    assert term_tolerance("password", "x", custom_distance_calculator=lambda t, p: 1.9) == 1
    assert term_tolerance("password", "x", custom_distance_calculator=lambda t, p: len(t) // 4) == 2


def test_custom_tolerance_receives_term_and_password():
    got = []

    def tolerance(term, password):
        got.append((term, password))
        return 0

    match_blocklist("  MyPass  ", ["Pass"], custom_distance_calculator=tolerance)
    assert got == [("pass", "MyPass")]


@pytest.mark.parametrize("bad", ["2", None, float("nan"), float("inf"), True])
def test_custom_tolerance_garbage_is_a_configuration_error(bad):
    with pytest.raises(PolicyConfigurationError):
        match_blocklist("password", ["password"], custom_distance_calculator=lambda t, p: bad)


def test_failing_custom_tolerance_is_a_configuration_error():
    with pytest.raises(PolicyConfigurationError) as info:
        match_blocklist("password", ["password"], custom_distance_calculator=lambda t, p: len(t) // 0)
    assert isinstance(info.value.__cause__, ZeroDivisionError)
