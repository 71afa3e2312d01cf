import asyncio
import logging
import sys

import restguard
from restguard.http import HTTPRequest


def response_str(response: restguard.HTTPResponse) -> str:
    sep = '-------------------------'
    result = f'\n{sep}\n'
    result += f'{response.status.code} {response.status.text} {response.url}\n'
    if response.ratelimit:
        limit = response.ratelimit
        result += f'rate limit: {limit.remaining}/{limit.limit} (reset {limit.reset})\n'
    result += f'\n{response.body}\n{sep}'
    return result


async def main() -> int:
    logging.basicConfig(level=logging.DEBUG)
    if len(sys.argv) < 2:
        url = input('Enter an API URL to fetch: ').strip()
    else:
        url = sys.argv[1].strip()

    config = restguard.ClientConfig(
        domains=restguard.Domains(main='roblox.com', cdn='rbxcdn.com'),
    )

    exit_code = 1
    async with restguard.HTTPClient(config) as client:
        try:
            response = await client.http_request(HTTPRequest(url=url, retries=2))
            print(response_str(response))
            exit_code = 0
        except restguard.RESTError as exc:
            print(exc.message)
        except Exception as exc:
            print(f'Error fetching {url}, check your network connection {exc}')

    return exit_code


if __name__ == '__main__':
    sys.exit(
        asyncio.run(main())
    )
