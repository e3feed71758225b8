"""GitHub REST API client: repository listing and commit emails."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import functools
import json
from typing import List

import aiohttp
from aiohttp.client import ClientSession
from gidgethub import sansio
from logzero import logger

from gitutils import unique_emails
from settings import HarvestConfig


REQUESTER = 'email-harvest'


class GitHubError(Exception):
    """Base class for failed GitHub API calls."""

    def __init__(self, message: str, url: str):
        super().__init__(message)
        self.url = url


class TransportError(GitHubError):
    """Connection failure or timeout."""


class DecodeError(GitHubError, ValueError):
    """Response body does not have the expected JSON shape."""


def provision_http_session(async_method):
    """Inject aiohttp client session into method keyword args.

    A session passed in by the caller is reused as is.
    """
    @functools.wraps(async_method)
    async def async_method_wrapper(self, *args, **kwargs):
        if kwargs.get('http_session') is not None:
            return await async_method(self, *args, **kwargs)
        async with ClientSession() as http_session:
            kwargs['http_session'] = http_session
            return await async_method(self, *args, **kwargs)
    return async_method_wrapper


def _load_json_list(body: bytes, url: str) -> list:
    try:
        payload = json.loads(body)
    except ValueError as json_err:
        raise DecodeError(f'Invalid JSON from {url}: {json_err}', url) from json_err
    if not isinstance(payload, list):
        # error responses come back as {"message": ...}
        message = payload.get('message') if isinstance(payload, dict) else None
        raise DecodeError(
            f'Expected a JSON list from {url}, got {type(payload).__name__}'
            + (f' ({message})' if message else ''),
            url,
        )
    return payload


def decode_repo_names(body: bytes, url: str = '') -> List[str]:
    """Return ``full_name`` of every repository in a listing body."""
    repo_names = []
    for repo in _load_json_list(body, url):
        full_name = repo.get('full_name') if isinstance(repo, dict) else None
        if not isinstance(full_name, str):
            raise DecodeError(f'Repository entry without full_name from {url}', url)
        repo_names.append(full_name)
    return repo_names


def decode_commit_emails(body: bytes, url: str = '') -> List[str]:
    """Return unique commit author emails, in commit order.

    Commits whose author email is missing or null are left out rather
    than reported as an empty string.
    """
    emails = []
    for commit in _load_json_list(body, url):
        if not isinstance(commit, dict):
            raise DecodeError(f'Commit entry is not an object from {url}', url)
        details = commit.get('commit') or {}
        if not isinstance(details, dict):
            raise DecodeError(f'Unexpected commit shape from {url}', url)
        author = details.get('author') or {}
        if not isinstance(author, dict):
            raise DecodeError(f'Unexpected commit shape from {url}', url)
        email = author.get('email')
        if not isinstance(email, (str, type(None))):
            raise DecodeError(f'Unexpected commit shape from {url}', url)
        if email is None:
            logger.debug('Commit %s has no author email', commit.get('sha'))
            continue
        emails.append(email)
    return unique_emails(emails)


@dataclass(frozen=True)
class GitHubUserClient:
    """Read-only client for one user's repositories."""

    config: HarvestConfig = field(default_factory=HarvestConfig)

    def _headers(self):
        headers = sansio.create_headers(REQUESTER, accept=sansio.accept_format())
        if self.config.token:
            headers['authorization'] = f'Bearer {self.config.token}'
        return headers

    @provision_http_session
    async def request(
            self, method: str, url: str,
            *,
            http_session: ClientSession,
    ) -> bytes:
        """Perform one HTTP call and return the whole response body."""
        logger.debug('%s %s', method, url)
        try:
            async with http_session.request(
                    method, url,
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as resp:
                body = await resp.read()
        except asyncio.TimeoutError as timeout_err:
            raise TransportError(
                f'Request to {url} timed out after {self.config.timeout}s', url,
            ) from timeout_err
        except aiohttp.ClientError as client_err:
            raise TransportError(f'Request to {url} failed: {client_err}', url) from client_err
        if resp.status >= 300:
            logger.warning('%s %s returned HTTP %s', method, url, resp.status)
        return body

    @provision_http_session
    async def list_repositories(
            self, account: str,
            *,
            http_session: ClientSession,
    ) -> List[str]:
        """Return full names of the repos owned by the account."""
        url = f'{self.config.api_url}/users/{account}/repos'
        body = await self.request('GET', url, http_session=http_session)
        return decode_repo_names(body, url)

    @provision_http_session
    async def fetch_commit_emails(
            self, full_name: str,
            *,
            http_session: ClientSession,
    ) -> List[str]:
        """Return unique author emails from the repo's latest commits."""
        url = f'{self.config.api_url}/repos/{full_name}/commits'
        body = await self.request('GET', url, http_session=http_session)
        return decode_commit_emails(body, url)
