'''
Request bodies as a closed set of tagged variants, and the encoder that
turns them into transport-ready payloads.
'''
from __future__ import annotations

import dataclasses as dc
import json
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any, Literal, Self, TypeAlias

import httpx

BodyType = Literal[
    'json',
    'json_bigint',
    'text',
    'formdata',
    'file',
    'urlencoded',
    'unknown',
]


@dc.dataclass(slots=True, frozen=True)
class FormDataPart:
    '''
    One named part of a multipart body; parts with a `file_name` are
    sent as file uploads.
    '''
    value: str | bytes
    file_name: str | None = None


class FormData(dict[str, tuple[str | None, str | bytes]]):
    '''
    An encoded multipart body: part name -> (file name, value). Setting
    a name twice keeps the last part.
    '''

    def set(self, name: str, value: str | bytes, file_name: str | None = None) -> None:
        self[name] = (file_name, value)


Payload: TypeAlias = str | bytes | FormData | Any


@dc.dataclass(slots=True, frozen=True)
class RequestBody:
    '''
    A request body. `type` selects how `value` is encoded:

    - json / json_bigint: any JSON-serializable value
    - text: a string sent as is
    - formdata: a mapping of part name to `FormDataPart`
    - file: raw bytes
    - urlencoded: a mapping, pair sequence or `httpx.QueryParams`
    - unknown: passed to the transport untouched
    '''
    type: BodyType
    value: Any

    @classmethod
    def json(cls, value: Any) -> Self:
        return cls('json', value)

    @classmethod
    def json_bigint(cls, value: Any) -> Self:
        return cls('json_bigint', value)

    @classmethod
    def text(cls, value: str) -> Self:
        return cls('text', value)

    @classmethod
    def formdata(cls, value: Mapping[str, FormDataPart]) -> Self:
        return cls('formdata', value)

    @classmethod
    def file(cls, value: bytes) -> Self:
        return cls('file', value)

    @classmethod
    def urlencoded(
        cls,
        value: Mapping[str, str] | Sequence[tuple[str, str]] | httpx.QueryParams,
    ) -> Self:
        return cls('urlencoded', value)

    @classmethod
    def unknown(cls, value: Any) -> Self:
        return cls('unknown', value)


@dc.dataclass(slots=True, frozen=True)
class EncodedBody:
    content: Payload
    content_type: str | None = None


def _encode_extended(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        raise TypeError(
            f'Decimal {value} has no exact JSON integer form'
        )
    raise TypeError(
        f'Object of type {type(value).__name__} is not JSON serializable'
    )


def dumps_json(value: Any, *, extended: bool = False) -> str:
    '''
    Compact JSON text. With `extended`, integral `Decimal` values are
    written as exact integers and any other `Decimal` raises TypeError
    rather than being rounded through float; plain ints are exact
    either way.
    '''
    return json.dumps(
        value,
        separators=(',', ':'),
        ensure_ascii=False,
        default=_encode_extended if extended else None,
    )


def format_body(body: RequestBody) -> EncodedBody:
    '''
    Encode a tagged request body.

    Parameters
    ----------
    body : RequestBody

    Returns
    -------
    EncodedBody
        The payload and, for typed encodings, the content type it must
        be sent with.
    '''
    if body.type == 'formdata':
        form = FormData()
        for name, part in body.value.items():
            form.set(name, part.value, part.file_name)
        return EncodedBody(form)

    if body.type == 'json':
        return EncodedBody(dumps_json(body.value), 'application/json')

    if body.type == 'json_bigint':
        return EncodedBody(
            dumps_json(body.value, extended=True),
            'application/json',
        )

    if body.type == 'urlencoded':
        return EncodedBody(
            str(httpx.QueryParams(body.value)),
            'application/x-www-form-urlencoded',
        )

    # text, file and unknown bodies go out as given
    return EncodedBody(body.value)
