import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')
_WORD_BOUNDARY = re.compile(r'[_\-\s.]+')


def filter_mapping(obj: Mapping[str, Any]) -> dict[str, Any]:
    '''
    Drop every entry whose value is `None`.
    '''
    return {key: value for key, value in obj.items() if value is not None}


def can_parse_url(url: str) -> bool:
    '''
    Whether `url` parses as an absolute URL (it has a scheme), the
    same test a browser's `URL.canParse` applies without a base.

    Parameters
    ----------
    url : str

    Returns
    -------
    bool
    '''
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme) and (bool(parts.netloc) or bool(parts.path))


def parse_int(value: str | None) -> int | float:
    '''
    Parse the leading base-10 integer of `value`, returning `nan`
    when there is none (mirrors the permissive `parseInt` semantics
    servers expect clients to apply to counter headers).

    Parameters
    ----------
    value : str | None

    Returns
    -------
    int | float
    '''
    if value is None:
        return float('nan')
    match = _LEADING_INT.match(value)
    if not match:
        return float('nan')
    return int(match.group(1))


def camelize_key(key: str, pascal_case: bool = False) -> str:
    words = [word for word in _WORD_BOUNDARY.split(key) if word]
    if not words:
        return key

    head, *tail = words
    head = head[0].upper() + head[1:] if pascal_case else head[0].lower() + head[1:]
    return head + ''.join(word[0].upper() + word[1:] for word in tail)


def camelize_object(
    value: Any,
    *,
    deep: bool = True,
    pascal_case: bool = False,
) -> Any:
    '''
    Rewrite the keys of a decoded JSON object to camelCase.

    Parameters
    ----------
    value : Any
        A decoded JSON value; anything that isn't a dict or list
        is returned untouched.
    deep : bool, optional
        Recurse into nested objects and arrays, by default True
    pascal_case : bool, optional
        Upper-case the first letter as well, by default False

    Returns
    -------
    Any
    '''
    if isinstance(value, list):
        if not deep:
            return value
        return [
            camelize_object(item, deep=deep, pascal_case=pascal_case)
            for item in value
        ]

    if not isinstance(value, dict):
        return value

    result = {}
    for key, item in value.items():
        if deep:
            item = camelize_object(item, deep=deep, pascal_case=pascal_case)
        new_key = camelize_key(key, pascal_case) if isinstance(key, str) else key
        result[new_key] = item
    return result
