#!/usr/bin/env python3

# find_emails.py - list the commit author emails used across a user's repos
#
# examples:
#   ./find_emails.py notTGY
#   ./find_emails.py --auth "$GITHUB_TOKEN" --debug notTGY
#
# Only the first page of repos and of each repo's commits is looked at.

import argparse
from concurrent.futures import wait
import itertools
import logging
import os
import sys

import logzero
from logzero import logger

from harvest import EmailHarvester, EmailsFound
from settings import DEFAULT_TIMEOUT, HarvestConfig


VARDIR = os.environ.get('EMAIL_HARVEST_VAR_DIR', '.cache')
LOGFILE = os.path.join(VARDIR, 'errors.log')

SPINNER_FRAMES = '|/-\\'


def setup_options(parser):
    parser.add_argument('account', nargs='?', default=None, help='GitHub user whose repos are scanned, prompted for when omitted')
    parser.add_argument('--auth', action='store', type=str, dest='auth', default=None,
                        help='GitHub Bearer token. Alternatively, put it into `GITHUB_TOKEN` env var.',)
    parser.add_argument('--debug', action='store_true', dest='debug', default=False, help='Print every repo result')
    parser.add_argument('--timeout', action='store', type=float, dest='timeout', default=DEFAULT_TIMEOUT,
                        help='Per-request timeout in seconds')


def render_emails(event):
    lines = [event.account]
    lines.extend(f'{idx}.\t{email}' for idx, email in enumerate(event.emails, start=1))
    return '\n'.join(lines) + '\n'


def wait_with_spinner(future, stream=None, interval=0.1):
    """Block until the future is done, drawing a spinner meanwhile."""
    stream = stream or sys.stderr
    for frame in itertools.cycle(SPINNER_FRAMES):
        if stream.isatty():
            stream.write(f'\r{frame} Loading...')
            stream.flush()
        done, _ = wait([future], timeout=interval)
        if done:
            break
    if stream.isatty():
        stream.write('\r' + ' ' * 12 + '\r')
        stream.flush()
    return future.result()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Find the commit author emails of a GitHub user.')

    setup_options(parser)

    args = parser.parse_args(argv)

    os.makedirs(VARDIR, exist_ok=True)
    logzero.logfile(LOGFILE, loglevel=logging.WARNING)
    logzero.loglevel(logging.DEBUG if args.debug else logging.WARNING)

    account = args.account
    try:
        if account is None:
            account = input('Nickname: ').strip()

        config = HarvestConfig.from_env(token=args.auth, verbose=args.debug, timeout=args.timeout)
        logger.debug('Authenticated requests: %s', bool(config.token))

        if not sys.stderr.isatty():
            print('Loading...', file=sys.stderr)
        event = wait_with_spinner(EmailHarvester(config).start(account))
    except (KeyboardInterrupt, EOFError):
        # in-flight requests are left to finish within their timeout
        return 130

    if isinstance(event, EmailsFound):
        print(render_emails(event))
        return 0

    print(f'\nWe had some trouble: {event.error}\n')
    print(f'See {LOGFILE} for any warnings/errors that were logged.', file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
