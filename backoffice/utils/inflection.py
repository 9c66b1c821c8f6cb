"""资源名称的英文单复数与命名转换.

只覆盖后台资源名常见的规则形式,不处理不规则名词.
"""

from __future__ import annotations

import re

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_VOWELS = frozenset("aeiou")


def underscore(name: str) -> str:
    """CamelCase 转 snake_case: ``BlogPost`` -> ``blog_post``."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()


def humanize(name: str) -> str:
    """snake_case 转展示名称: ``blog_post`` -> ``Blog post``."""
    text = name.replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def pluralize(word: str) -> str:
    """返回名词复数形式."""
    if not word:
        return word
    lower = word.lower()
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return f"{word}es"
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in _VOWELS:
        return f"{word[:-1]}ies"
    return f"{word}s"


def singularize(word: str) -> str:
    """返回名词单数形式."""
    lower = word.lower()
    if lower.endswith("ies") and len(lower) > 3:
        return f"{word[:-3]}y"
    if lower.endswith(("ches", "shes", "sses", "xes", "zes")):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith("ss"):
        return word[:-1]
    return word


def pluralize_count(word: str, count: int) -> str:
    """按数量选择单复数: 1 -> 单数,其余 -> 复数."""
    if count == 1:
        return singularize(word)
    return pluralize(singularize(word))
