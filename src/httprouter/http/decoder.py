"""
=============================================================================
URL DECODER
=============================================================================

Decodes the percent-escapes this router understands in query strings.

This is NOT urllib.parse.unquote. Only a fixed set of
punctuation escapes is decoded; everything else passes through as is:

    decode("hello%20world")   → "hello world"
    decode("a%2Fb")           → "a/b"
    decode("%41BC")           → "%41BC"      (letters are never decoded)
    decode("%2f")             → "%2f"        (lowercase hex is not listed)
    decode("a+b")             → "a+b"        (no form-encoding of spaces)

Malformed escapes ("%", "%G1") are left untouched and never raise.

=============================================================================
ORDER MATTERS (A LITTLE)
=============================================================================

Replacements run one after another over the whole string, in table
order. "%25" (the percent sign) is decoded AFTER "%20", so "%2520"
becomes "%20" and stays that way: the "%20" step has already run.

=============================================================================
"""

# Escape → character, applied top to bottom.
ESCAPES: tuple[tuple[str, str], ...] = (
    ("%20", " "),
    ("%21", "!"),
    ("%22", '"'),
    ("%23", "#"),
    ("%24", "$"),
    ("%25", "%"),
    ("%26", "&"),
    ("%27", "'"),
    ("%28", "("),
    ("%29", ")"),
    ("%2A", "*"),
    ("%2B", "+"),
    ("%2C", ","),
    ("%2D", "-"),
    ("%2E", "."),
    ("%2F", "/"),
    ("%3A", ":"),
    ("%3B", ";"),
    ("%3C", "<"),
    ("%3D", "="),
    ("%3E", ">"),
    ("%3F", "?"),
    ("%40", "@"),
    ("%5B", "["),
    ("%5C", "\\"),
)


def decode(s: str) -> str:
    """
    Decode the supported percent-escapes in ``s``.

    Args:
        s: Raw query key or value.

    Returns:
        The decoded string. Unknown escapes are kept verbatim.
    """
    if "%" not in s:
        return s
    for escape, char in ESCAPES:
        s = s.replace(escape, char)
    return s
