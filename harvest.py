"""Collect commit-author emails across all repos of a GitHub account."""

from __future__ import annotations

import asyncio
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from aiohttp.client import ClientSession
from logzero import logger

from gh import GitHubError, GitHubUserClient, provision_http_session
from gitutils import merge_emails
from settings import HarvestConfig


@dataclass(frozen=True)
class RepoEmails:
    """Outcome of fetching one repository."""

    full_name: str
    emails: List[str] = field(default_factory=list)
    error: Optional[GitHubError] = None


@dataclass(frozen=True)
class EmailsFound:
    account: str
    emails: List[str]


@dataclass(frozen=True)
class HarvestFailed:
    account: str
    error: Exception

    def __str__(self):
        return str(self.error)


HarvestEvent = Union[EmailsFound, HarvestFailed]


class EmailHarvester:
    """Fan out commit fetches over an account's repos and merge the emails."""

    def __init__(
            self,
            config: Optional[HarvestConfig] = None,
            client: Optional[GitHubUserClient] = None,
    ):
        self.config = config or HarvestConfig()
        self.client = client or GitHubUserClient(self.config)

    async def _collect_repo(self, full_name, done_queue, http_session):
        try:
            emails = await self.client.fetch_commit_emails(
                full_name, http_session=http_session,
            )
        except GitHubError as gh_err:
            logger.debug('%s: %s', full_name, gh_err)
            outcome = RepoEmails(full_name, error=gh_err)
        else:
            if self.config.verbose:
                logger.info('%s: %s', full_name, emails)
            outcome = RepoEmails(full_name, emails=emails)
        done_queue.put_nowait(outcome)

    @provision_http_session
    async def aggregate(
            self, account: str,
            *,
            http_session: ClientSession,
    ) -> List[str]:
        """Return the unique commit-author emails of all account repos.

        Repos are fetched concurrently and merged in the order the fetches
        complete, so the resulting order can vary between runs. The first
        failure to complete is raised and everything else is discarded.
        """
        if not account or not account.strip():
            raise ValueError('Account name must not be empty')

        repo_names = await self.client.list_repositories(
            account, http_session=http_session,
        )
        logger.info('Found %d repos for %s', len(repo_names), account)
        if not repo_names:
            return []

        done_queue = asyncio.Queue(maxsize=len(repo_names))
        tasks = [
            asyncio.ensure_future(
                self._collect_repo(full_name, done_queue, http_session),
            )
            for full_name in repo_names
        ]
        await asyncio.wait(tasks)
        # retrieves every task exception, raises the first unexpected one
        await asyncio.gather(*tasks)

        completed = []
        while not done_queue.empty():
            outcome = done_queue.get_nowait()
            if outcome.error is not None:
                raise outcome.error
            completed.append(outcome.emails)
        return merge_emails(completed)

    def _run(self, account, callback):
        try:
            emails = asyncio.run(self.aggregate(account))
        except Exception as err:
            logger.error('Collecting emails for %s failed: %s', account, err)
            event = HarvestFailed(account, err)
        else:
            logger.info('Collected %d emails for %s', len(emails), account)
            event = EmailsFound(account, emails)
        if callback is not None:
            callback(event)
        return event

    def start(
            self, account: str,
            callback: Optional[Callable[[HarvestEvent], None]] = None,
    ) -> Future:
        """Run the aggregation in the background.

        The returned future resolves to an ``EmailsFound`` or a
        ``HarvestFailed`` event, never to an exception.
        """
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._run, account, callback)
        executor.shutdown(wait=False)
        return future


async def aggregate_emails(
        account: str,
        config: Optional[HarvestConfig] = None,
        client: Optional[GitHubUserClient] = None,
) -> List[str]:
    """Shortcut for ``EmailHarvester(config, client).aggregate(account)``."""
    return await EmailHarvester(config, client).aggregate(account)
