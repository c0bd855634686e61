"""
Slug helpers used by the post and tag write paths.

Both functions are pure: the caller is responsible for fetching the slugs
already present in the store (a prefix query) and for handling the unique
constraint violation that can still occur when two writers race.
"""
from collections.abc import Iterable

import regex

FALLBACK_SLUG = "post"

# Column widths are 350 (posts) and 120 (tags); post slugs keep room for
# a "-N" suffix.
MAX_POST_SLUG_LENGTH = 300
MAX_TAG_SLUG_LENGTH = 120

# Letters and digits of any script are kept, including combining vowel
# signs (Thai, Devanagari) that are Alphabetic but not str.isalnum().
# Everything else, underscore included, is a separator.
_SEPARATOR_RE = regex.compile(r"[^\p{Alphabetic}\p{N}]+")


def derive_slug(text: str, max_length: int | None = None) -> str:
    """
    Return a lowercase, hyphen-separated slug for *text*.

    Runs of non-alphanumeric characters collapse to a single hyphen and
    leading/trailing hyphens are stripped.  With *max_length* the slug is
    cut to at most that many characters; lowercasing can lengthen text
    (``"İ".lower()`` is two characters), so the cap applies to the result.
    Never returns an empty string: text without any letters or digits maps
    to ``FALLBACK_SLUG``.

    >>> derive_slug("Hello, World!")
    'hello-world'
    >>> derive_slug("测试文章")
    '测试文章'
    """
    slug = _SEPARATOR_RE.sub("-", text.lower()).strip("-")
    if max_length is not None:
        slug = slug[:max_length].rstrip("-")
    return slug or FALLBACK_SLUG


def resolve_unique_slug(base_slug: str, existing_slugs: Iterable[str]) -> str:
    """
    Return *base_slug* if unused, otherwise the first free ``base-N`` (N >= 1).

    *existing_slugs* should contain every stored slug starting with
    *base_slug*; the result only depends on that snapshot.
    """
    taken = set(existing_slugs)
    if base_slug not in taken:
        return base_slug

    counter = 1
    while f"{base_slug}-{counter}" in taken:
        counter += 1
    return f"{base_slug}-{counter}"
