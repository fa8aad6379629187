from tcpkit.helpers import concat, pretty_print


def test_printable_unchanged():
    assert pretty_print(b"hello") == "hello"


def test_quote_is_escaped():
    assert pretty_print(b'a"b') == "a\\x22b"


def test_unprintable_escaped():
    assert pretty_print(b"\x00\xff") == "\\x00\\xff"


def test_exact_length_not_truncated():
    assert pretty_print(b"abc", 3) == "abc"


def test_long_input_truncated():
    result = pretty_print(b"a" * 40)
    assert len(result) == 32
    assert result.endswith("...")
    assert result[:-3] == "a" * 29


def test_short_limit_appends_ellipsis():
    assert pretty_print(b"abc", 2) == "ab..."


def test_str_input_accepted():
    assert pretty_print("xyz") == pretty_print(b"xyz")


def test_concat():
    assert concat([b"ab", b"", b"cd"]) == b"abcd"
    assert concat([]) == b""