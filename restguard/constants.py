'''
Header names, status codes and other fixed values shared by the client.
'''
import re
from typing import Final

RETRY_ERROR_CODES: Final = frozenset({500, 502, 503, 504})
DEFAULT_ACCOUNT_TOKEN: Final = 'default'

CSRF_TOKEN_HEADER_NAME: Final = 'x-csrf-token'
CSRF_META_TAG_SELECTOR: Final = '[name="csrf-token"]'
USER_AGENT_HEADER_NAME: Final = 'user-agent'
CONTENT_TYPE_HEADER_NAME: Final = 'content-type'

RATELIMIT_LIMIT_HEADER: Final = 'x-ratelimit-limit'
RATELIMIT_REMAINING_HEADER: Final = 'x-ratelimit-remaining'
RATELIMIT_RESET_HEADER: Final = 'x-ratelimit-reset'

CHALLENGE_TYPE_HEADER: Final = 'rblx-challenge-type'
CHALLENGE_ID_HEADER: Final = 'rblx-challenge-id'
CHALLENGE_METADATA_HEADER: Final = 'rblx-challenge-metadata'

REMOVE_PROTOCOL_REGEX: Final = re.compile(r'^https?://')
