'''
Default parsers for the structured error bodies and the challenge
headers returned by the API. Both can be swapped through `ClientConfig`.

- BEDEV1 bodies look like `{"errors": [{"code": 0, "message": "..."}]}`
- BEDEV2 bodies are a single `{"code": "...", "message": "...", "details": [...]}`
  object, or an `errors` array of such objects.
'''
import dataclasses as dc
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Literal, TypeAlias

import httpx

from restguard.constants import (
    CHALLENGE_ID_HEADER,
    CHALLENGE_METADATA_HEADER,
    CHALLENGE_TYPE_HEADER,
)

logger = logging.getLogger(__name__)

ErrorHandling = Literal['BEDEV1', 'BEDEV2', 'none']
ErrorRecord: TypeAlias = dict[str, Any]
ErrorParser: TypeAlias = Callable[
    [httpx.Response],
    list[ErrorRecord] | Awaitable[list[ErrorRecord]],
]

_BEDEV1_FIELDS = ('code', 'message', 'userFacingMessage', 'field', 'fieldData')
_BEDEV2_FIELDS = ('code', 'message', 'details', 'field')


@dc.dataclass(slots=True, frozen=True)
class ParsedChallenge:
    challenge_type: str
    challenge_id: str
    challenge_base64_metadata: str


ChallengeParser: TypeAlias = Callable[[httpx.Headers], ParsedChallenge | None]


def parse_challenge_headers(headers: httpx.Headers) -> ParsedChallenge | None:
    '''
    Read the challenge triple off a response.

    Parameters
    ----------
    headers : httpx.Headers

    Returns
    -------
    ParsedChallenge | None
        None unless all three challenge headers are present.
    '''
    challenge_type = headers.get(CHALLENGE_TYPE_HEADER)
    challenge_id = headers.get(CHALLENGE_ID_HEADER)
    metadata = headers.get(CHALLENGE_METADATA_HEADER)
    if not (challenge_type and challenge_id and metadata):
        return None

    return ParsedChallenge(
        challenge_type=challenge_type,
        challenge_id=challenge_id,
        challenge_base64_metadata=metadata,
    )


async def _load_json_body(response: httpx.Response) -> Any:
    content = await response.aread()
    if not content or not content.strip():
        return None
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.debug('Error body is not JSON: %s', exc)
        return None


def _pick(entry: Mapping[str, Any], fields: tuple[str, ...]) -> ErrorRecord:
    return {
        key: entry[key]
        for key in fields
        if entry.get(key) is not None
    }


async def parse_bedev1_error(response: httpx.Response) -> list[ErrorRecord]:
    data = await _load_json_body(response)
    if not isinstance(data, dict):
        return []

    errors = data.get('errors')
    if not isinstance(errors, list):
        return []

    return [
        _pick(entry, _BEDEV1_FIELDS)
        for entry in errors
        if isinstance(entry, dict)
    ]


async def parse_bedev2_error(response: httpx.Response) -> list[ErrorRecord]:
    data = await _load_json_body(response)
    if not isinstance(data, dict):
        return []

    if isinstance(data.get('errors'), list):
        return [
            _pick(entry, _BEDEV2_FIELDS)
            for entry in data['errors']
            if isinstance(entry, dict)
        ]

    record = _pick(data, _BEDEV2_FIELDS)
    return [record] if record else []


DEFAULT_ERROR_PARSERS: Mapping[str, ErrorParser] = {
    'BEDEV1': parse_bedev1_error,
    'BEDEV2': parse_bedev2_error,
}


def render_errors(errors: list[ErrorRecord]) -> str:
    '''
    Render error records as `key: "value"` lines, one block per error
    with a blank line between blocks. List values are written as JSON.
    '''
    blocks = []
    for error in errors:
        lines = []
        for key, value in error.items():
            if isinstance(value, list):
                value = json.dumps(value)
            lines.append(f'{key}: "{value}"')
        blocks.append('\n'.join(lines))
    return '\n\n'.join(blocks)
