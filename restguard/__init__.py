'''
**restguard**
---------

An async client for CSRF protected, rate limited web APIs that answer
with bot challenges. See `restguard.http.HTTPClient`.
'''
from restguard import constants
from restguard._utils import camelize_object
from restguard.errors import NoAttemptsLeftError, RESTError, URLRejectedError
from restguard.http import (
    ClientConfig,
    Domains,
    FormDataPart,
    HTTPClient,
    HTTPRequest,
    HTTPResponse,
    ParsedChallenge,
    RateLimit,
    RequestBody,
)

__all__ = [
    'constants',
    'camelize_object',
    'NoAttemptsLeftError',
    'RESTError',
    'URLRejectedError',
    'ClientConfig',
    'Domains',
    'FormDataPart',
    'HTTPClient',
    'HTTPRequest',
    'HTTPResponse',
    'ParsedChallenge',
    'RateLimit',
    'RequestBody',
]
