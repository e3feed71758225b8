from typing import Iterable, List


def unique_emails(emails: Iterable[str]) -> List[str]:
    """Drop repeated emails, keeping the first-seen order."""
    return merge_emails((emails, ))


def merge_emails(email_lists: Iterable[Iterable[str]]) -> List[str]:
    """Flatten email lists into one, without duplicates.

    Emails are compared as-is: no case or whitespace normalization.
    """
    seen = set()
    merged = []
    for emails in email_lists:
        for email in emails:
            if email in seen:
                continue
            seen.add(email)
            merged.append(email)
    return merged
