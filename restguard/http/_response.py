'''
The typed response returned by the client and the body decoding that
builds it.
'''
from __future__ import annotations

import dataclasses as dc
import json
from email.parser import BytesParser
from email.policy import HTTP
from typing import Any

import httpx
from bs4 import BeautifulSoup

from restguard.http._body import FormData
from restguard.http._config import CamelizeObjectFn
from restguard.http._ratelimit import RateLimit
from restguard.http._request import HTTPRequest


@dc.dataclass(slots=True, frozen=True)
class ResponseStatus:
    ok: bool
    code: int
    text: str


def _parse_multipart(content_type: str, content: bytes) -> FormData:
    message = BytesParser(policy=HTTP).parsebytes(
        f'Content-Type: {content_type}\r\n\r\n'.encode() + content
    )
    form = FormData()
    for part in message.iter_parts():
        name = part.get_param('name', header='content-disposition')
        if not name:
            continue
        file_name = part.get_filename()
        payload = part.get_payload(decode=True) or b''
        if file_name is None:
            payload = payload.decode(part.get_content_charset() or 'utf-8')
        form.set(str(name), payload, file_name)
    return form


def parse_form_data(response: httpx.Response) -> FormData:
    '''
    Decode a url-encoded or multipart body into `FormData`.
    '''
    content_type = response.headers.get('content-type', '')
    if content_type.startswith('multipart/form-data'):
        return _parse_multipart(content_type, response.content)

    form = FormData()
    for key, value in httpx.QueryParams(response.text).multi_items():
        form.set(key, value)
    return form


async def parse_body(
    request: HTTPRequest,
    response: httpx.Response,
    camelize_object: CamelizeObjectFn | None = None,
) -> Any:
    '''
    Decode a response body according to `request.expect`.

    Parameters
    ----------
    request : HTTPRequest
    response : httpx.Response
    camelize_object : CamelizeObjectFn | None, optional
        Applied to JSON bodies when the request asks for it, by default None

    Returns
    -------
    Any
        None for `expect="none"`, empty (content-length 0) and 204
        responses, otherwise the decoded body.
    '''
    expect = request.expect or 'json'
    if (
        expect == 'none'
        or response.headers.get('content-length') == '0'
        or response.status_code == 204
    ):
        return None

    await response.aread()

    if expect in ('json', 'json_bigint'):
        body = json.loads(response.text.strip())
        if request.camelize_response and camelize_object:
            body = camelize_object(body, deep=True, pascal_case=False)
        return body

    if expect == 'text':
        return response.text

    if expect == 'bytes':
        return response.content

    if expect == 'formdata':
        return parse_form_data(response)

    if expect == 'dom':
        return BeautifulSoup(response.text, 'html.parser')

    raise ValueError(f'Unsupported expected response type: {expect!r}')


@dc.dataclass(slots=True, frozen=True)
class HTTPResponse:
    '''
    A decoded response.

    Attributes
    ----------
    request : HTTPRequest
        The request this response answers.
    raw : httpx.Response
        The transport response; its body stays readable.
    body : Any
        The decoded body, see `parse_body`.
    ratelimit : RateLimit | None
        The rate-limit counters, when the response reported them.
    '''
    request: HTTPRequest
    raw: httpx.Response
    body: Any = None
    ratelimit: RateLimit | None = None

    @classmethod
    async def init(
        cls,
        request: HTTPRequest,
        response: httpx.Response,
        ratelimit: RateLimit | None = None,
        camelize_object: CamelizeObjectFn | None = None,
    ) -> HTTPResponse:
        body = await parse_body(request, response, camelize_object)
        return cls(
            request=request,
            raw=response,
            body=body,
            ratelimit=ratelimit,
        )

    @property
    def status(self) -> ResponseStatus:
        return ResponseStatus(
            ok=self.raw.is_success,
            code=self.raw.status_code,
            text=self.raw.reason_phrase,
        )

    @property
    def headers(self) -> httpx.Headers:
        return self.raw.headers

    @property
    def url(self) -> str:
        return str(self.raw.url)

    @property
    def redirected(self) -> bool:
        return bool(self.raw.history)
