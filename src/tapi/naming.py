from __future__ import annotations

import re

# acronyms ("HTTP" in "HTTPServer"), capitalized/lower words, bare numbers;
# trailing digits stay with their word ("api2")
_WORD = re.compile(r"[A-Z]+(?![a-z])[0-9]*|[A-Z]?[a-z]+[0-9]*|[0-9]+")


def split_words(text: str) -> list[str]:
    return _WORD.findall(text or "")


def shouty_snake(text: str) -> str:
    # MyEnum -> MY_ENUM
    return "_".join(w.upper() for w in split_words(text))


def lower_camel(text: str) -> str:
    # /api2/:a/:b -> api2AB
    words = split_words(text)
    if not words:
        return ""
    head, *rest = words
    return head.lower() + "".join(w[:1].upper() + w[1:].lower() for w in rest)
