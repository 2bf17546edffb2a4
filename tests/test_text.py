from passwordgate.text import edit_distance, grapheme_length, graphemes

FAMILY = "\U0001F468\u200d\U0001F469\u200d\U0001F467\u200d\U0001F466"


def _full_matrix(a, b):
    m = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(len(a) + 1):
        m[i][0] = i
    for j in range(len(b) + 1):
        m[0][j] = j
    for i in range(1, len(a) + 1):
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            m[i][j] = min(m[i - 1][j] + 1, m[i][j - 1] + 1, m[i - 1][j - 1] + cost)
    return m[len(a)][len(b)]


def test_length_ascii_and_empty():
    assert grapheme_length("") == 0
    assert grapheme_length("hello") == 5
    assert grapheme_length("hello world") == 11
    assert grapheme_length(" ") == 1


def test_length_counts_user_perceived_characters():
    assert grapheme_length("e\u0301") == 1
    assert grapheme_length("\U0001F44D\U0001F3FE") == 1  # thumbs up + skin tone
    assert grapheme_length(FAMILY) == 1
    assert grapheme_length(FAMILY) <= len(FAMILY)
    assert grapheme_length("hello \U0001F44B") == 7


def test_length_non_latin_scripts():
    assert grapheme_length("こんにちは") == 5
    assert grapheme_length("привет") == 6
    assert grapheme_length("안녕하세요") == 5


def test_graphemes_split():
    assert graphemes("ae\u0301b") == ["a", "e\u0301", "b"]
    assert graphemes("") == []


def test_distance_known_values():
    assert edit_distance("kitten", "sitten") == 1
    assert edit_distance("sitting", "kitten") == 3
    assert edit_distance("", "abc") == 3
    assert edit_distance("abc", "") == 3
    assert edit_distance("flaw", "lawn") == 2


def test_distance_identity_and_symmetry():
    words = ["password", "p@ssw0rd", "", "abc", "kitten", "sitting", "caf\u00e9"]
    for a in words:
        assert edit_distance(a, a) == 0
        for b in words:
            assert edit_distance(a, b) == edit_distance(b, a)


def test_distance_triangle_inequality():
    words = ["password", "p@ssw0rd", "pass", "word", "swordfish", ""]
    for a in words:
        for b in words:
            for c in words:
                assert edit_distance(a, c) <= edit_distance(a, b) + edit_distance(b, c)


def test_distance_matches_full_matrix():
    pairs = [("intention", "execution"), ("abcdef", "azced"), ("short", "a much longer string"), ("x", "y")]
    for a, b in pairs:
        assert edit_distance(a, b) == _full_matrix(a, b)


def test_distance_is_canonical_and_grapheme_based():
    assert edit_distance("caf\u00e9", "cafe\u0301") == 0
    assert edit_distance("a" + FAMILY, "a") == 1
    assert edit_distance("e\u0301", "e") == 1
