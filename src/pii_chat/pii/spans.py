"""
Extraction of delimiter-wrapped PII spans from raw detector output.
"""

import re


def extract_delimited_spans(
    text: str,
    open_delimiter: str = "<s>",
    close_delimiter: str = "</s>",
) -> list[str]:
    """
    Return every substring enclosed by the delimiters, in order of appearance.

    Matching is non-greedy and may cross line breaks. Duplicates are kept,
    one entry per occurrence. Empty spans and unclosed markers are ignored.

    Examples:
        >>> extract_delimited_spans("Found: <s>John Doe</s> and <s>555-1234</s>")
        ['John Doe', '555-1234']
        >>> extract_delimited_spans("No PII detected.")
        []
    """
    pattern = re.compile(
        re.escape(open_delimiter) + r"(.+?)" + re.escape(close_delimiter),
        re.DOTALL,
    )
    return [m.group(1) for m in pattern.finditer(text)]
