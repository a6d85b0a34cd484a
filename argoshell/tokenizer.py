"""
Quote-aware line tokenizer.

A line is split on the delimiter into fields; a field that starts with a double
quote runs until the matching unescaped quote (a doubled quote "" is an escaped
literal quote) and may contain delimiters. Quoted fields keep their quotes: the
binder removes one wrapping pair through unquote() right before conversion, so a
quoted "-x" is never mistaken for a flag.

    >>> tokenize('echo "Hello ""World""!"')
    ['echo', '"Hello ""World""!"']
    >>> [unquote(token) for token in _]
    ['echo', 'Hello "World"!']
"""
from .faults import MalformedInputError

QUOTE = '"'


def tokenize(line, /, *, delimiter=" ", comments=("#",)):
    """
    split one raw input line into tokens.

    rules
    - runs of delimiters never produce empty tokens; an empty or blank line yields [].
    - a line whose first non-blank content starts with a comment token yields [].
    - a quoted field ends at its closing quote, which must be followed by a delimiter
      or the end of the line.

    errors
    - MalformedInputError on unclosed quotes or on text glued to a closing quote.
    """
    if not isinstance(line, str):
        raise TypeError("tokenize() argument must be a string")

    stripped = line.strip()
    if not stripped or stripped.startswith(tuple(comments)):
        return []

    tokens = []
    index, length = 0, len(stripped)
    while index < length:
        if stripped.startswith(delimiter, index):
            index += len(delimiter)
            continue

        start = index
        if stripped[index] == QUOTE:
            index += 1
            while True:
                if index >= length:
                    raise MalformedInputError(
                        "unclosed quotes in field starting at column %d" % (start + 1),
                        line=line,
                        column=start + 1,
                        hint='close the field with a matching quote (use "" for a literal quote)',
                    )
                if stripped[index] == QUOTE:
                    if stripped.startswith(QUOTE * 2, index):
                        index += 2
                        continue
                    index += 1
                    break
                index += 1
            if index < length and not stripped.startswith(delimiter, index):
                raise MalformedInputError(
                    "unexpected text after closing quote at column %d" % (index + 1),
                    line=line,
                    column=index + 1,
                    hint="separate the quoted field from the next one with a space",
                )
        else:
            end = stripped.find(delimiter, index)
            index = length if end < 0 else end

        tokens.append(stripped[start:index])

    return tokens


def unquote(token, /):
    """
    remove one layer of wrapping quotes and collapse escaped "" pairs.

    tokens that are not wrapped in quotes are returned unchanged.
    """
    if isquoted(token):
        return token[1:-1].replace(QUOTE * 2, QUOTE)
    return token


def isquoted(token, /):
    return len(token) >= 2 and token[0] == QUOTE and token[-1] == QUOTE


__all__ = (
    "tokenize",
    "unquote",
    "isquoted",
)
