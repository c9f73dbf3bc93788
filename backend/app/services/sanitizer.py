"""Normalize raw model output into a candidate JSON span.

The transform is deterministic and side-effect free.  Its output is a
best-effort candidate; it is *not* guaranteed to parse.

Known limitation: every single quote is replaced with a double quote, which
corrupts apostrophes inside string values.  The plan prompt tells the model
not to use single quotes, so this is accepted rather than tokenizing.
"""

import re

# Opening or closing fence, with or without a language tag (```json, ```JSON, ```)
_FENCE = re.compile(r"```[\w.+-]*[ \t]*", re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def strip_fences(text: str) -> str:
    """Remove code-fence markers and surrounding whitespace."""
    return _FENCE.sub("", text).strip()


def extract_object_span(text: str) -> str:
    """Slice *text* to the outermost ``{ ... }`` region.

    Output truncated before its closing brace falls back to everything from
    the first ``{`` onward.
    """
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        return text[first : last + 1]
    if first != -1:
        return text[first:]
    return text


def remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def sanitize(raw_text: str) -> str:
    """Return the candidate JSON span for *raw_text*.

    Steps: strip fences, slice to the brace-delimited span, drop trailing
    commas, then replace single quotes with double quotes.
    """
    content = strip_fences(raw_text)
    content = extract_object_span(content)
    content = remove_trailing_commas(content)
    return content.replace("'", '"')
