"""
Curio Backend — Board Slugs
============================

What:  Derives URL-safe board slugs from titles and allocates unique ones.
How:   `slugify` is deterministic. `generate_unique_slug` tries the plain
       slug first, then the slug plus a random suffix, driven by a tenacity
       retry loop that stops after `settings.slug_max_attempts`.

    "My Favourite Talks!"  →  my-favourite-talks
    (taken)                →  my-favourite-talks-k3x9
"""

import logging
import re
import secrets
import string
import unicodedata
from typing import Awaitable, Callable, Optional

from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt

from curio.config import settings
from curio.exceptions import ConflictError, ValidationError

logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 60
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


class SlugTakenError(Exception):
    """Internal signal for the retry loop: the candidate slug is in use."""


def slugify(title: str) -> str:
    """
    Deterministically turn a title into a slug.

    Accents are folded to ASCII, everything else that is not a letter or digit
    collapses into single hyphens. Returns "" when nothing usable remains.
    """
    folded = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM_RE.sub("-", folded.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def random_suffix(length: int) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


def with_suffix(base: str, suffix: str) -> str:
    head = base[: MAX_SLUG_LENGTH - len(suffix) - 1].rstrip("-")
    return f"{head}-{suffix}"


async def generate_unique_slug(
    title: str,
    exists: Callable[[str], Awaitable[bool]],
    max_attempts: Optional[int] = None,
    suffix_length: Optional[int] = None,
) -> str:
    """
    Allocate a slug for `title` that `exists` reports as free.

    Args:
        title: Board title
        exists: Async predicate, True when a slug is already taken
        max_attempts: Total candidates to try (defaults to settings)
        suffix_length: Random suffix length (defaults to settings)

    Raises:
        ValidationError: The title has no letters or digits
        ConflictError: Every candidate was taken
    """
    base = slugify(title)
    if not base:
        raise ValidationError(
            message="Board title must contain at least one letter or digit.",
            field="title",
        )

    attempts = max_attempts or settings.slug_max_attempts
    length = suffix_length or settings.slug_suffix_length
    candidate = base

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            retry=retry_if_exception_type(SlugTakenError),
        ):
            with attempt:
                number = attempt.retry_state.attempt_number
                candidate = base if number == 1 else with_suffix(base, random_suffix(length))
                if await exists(candidate):
                    raise SlugTakenError(candidate)
    except RetryError:
        logger.warning("Slug space exhausted for base '%s' after %d attempts", base, attempts)
        raise ConflictError(
            message="Could not allocate a unique address for this board. Try another title.",
            context={"slug": base, "attempts": attempts},
        )

    return candidate
