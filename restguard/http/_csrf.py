'''
The per-client CSRF token cache.

Tokens are kept per account token identifier, plus one anonymous "ip"
slot used for unauthenticated calls. Every write also lands in the
anonymous slot, so it always holds the last token the server handed out.
'''
from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TypeAlias

from bs4 import BeautifulSoup

from restguard.constants import CSRF_META_TAG_SELECTOR, DEFAULT_ACCOUNT_TOKEN

logger = logging.getLogger(__name__)

CsrfToken: TypeAlias = str | None | Awaitable[str | None]
PageDocument: TypeAlias = (
    str | BeautifulSoup | Callable[[], str | BeautifulSoup | None]
)


def read_csrf_meta_tag(document: PageDocument | None) -> str | None:
    '''
    Read the `data-token` attribute of the page's CSRF meta tag.

    Parameters
    ----------
    document : PageDocument | None
        The page HTML, an already parsed soup, or a callable returning
        either for pages that change over time.

    Returns
    -------
    str | None
    '''
    # soups are callable too (find_all), so test for them first
    if not isinstance(document, (str, BeautifulSoup)) and callable(document):
        document = document()
    if document is None:
        return None

    soup = document
    if isinstance(soup, str):
        soup = BeautifulSoup(soup, 'html.parser')

    tag = soup.select_one(CSRF_META_TAG_SELECTOR)
    if not tag:
        return None

    token = tag.get('data-token')
    if isinstance(token, list):
        token = ' '.join(token)
    return token or None


def _account_key(account_token: str | int | None) -> str:
    if account_token is None:
        return DEFAULT_ACCOUNT_TOKEN
    return str(account_token)


class CsrfTokenStore:
    __slots__ = (
        'accounts',
        'ip',
        '_on_website',
        '_document',
    )

    def __init__(
        self,
        *,
        on_website: bool = False,
        document: PageDocument | None = None,
    ) -> None:
        self.accounts: dict[str, CsrfToken] = {}
        self.ip: CsrfToken = None
        self._on_website = on_website
        self._document = document

    def get(
        self,
        authorized: bool | None = False,
        account_token: str | int | None = DEFAULT_ACCOUNT_TOKEN,
    ) -> CsrfToken:
        '''
        Look up the token to send with a request.

        Parameters
        ----------
        authorized : bool | None, optional
            Whether the request carries credentials, by default False
        account_token : str | int | None, optional
            The account the request is made for, by default (or when
            None) the default account

        Returns
        -------
        CsrfToken
            A token, a pending token to await, or None.
        '''
        key = _account_key(account_token)
        token = self.accounts.get(key) if authorized else self.ip

        if (
            not token
            and authorized
            and key == DEFAULT_ACCOUNT_TOKEN
            and self._on_website
        ):
            token = read_csrf_meta_tag(self._document)
            logger.debug('CSRF token read from page document: %s', bool(token))

        return token

    def set(
        self,
        value: CsrfToken,
        authorized: bool | None = False,
        account_token: str | int | None = DEFAULT_ACCOUNT_TOKEN,
    ) -> None:
        '''
        Store a token. Pending values are wrapped in a future so every
        request waiting on them gets the same result; that requires a
        running event loop.
        '''
        if inspect.isawaitable(value) and not isinstance(value, asyncio.Future):
            value = asyncio.ensure_future(value)

        if authorized:
            self.accounts[_account_key(account_token)] = value

        self.ip = value


async def resolve_token(token: CsrfToken) -> str | None:
    if inspect.isawaitable(token):
        return await token
    return token
