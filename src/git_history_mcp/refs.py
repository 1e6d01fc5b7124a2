"""Classification of the `%D` decoration field into tag or references."""

from __future__ import annotations

from collections.abc import Sequence

from .constants import (
    DEFAULT_REMOTE_NAME,
    HEAD_POINTER_PREFIX,
    SENTINEL_REF_SUFFIX,
    TAG_MARKER,
)
from .models import Decoration, NoDecoration, ReferencesDecoration, TagDecoration

DEFAULT_SENTINEL_REMOTES = (DEFAULT_REMOTE_NAME,)


def is_sentinel_ref(name: str, remote_names: Sequence[str] = DEFAULT_SENTINEL_REMOTES) -> bool:
    """Return whether a ref is a known remote's default-branch pointer such as `origin/HEAD`.

    A local branch that merely ends in `/HEAD` (e.g. `feature/HEAD`) is kept.
    """
    head = name.split(" -> ", 1)[0].strip()
    return any(head == f"{remote}{SENTINEL_REF_SUFFIX}" for remote in remote_names)


def classify_decoration(
    raw: str,
    remote_names: Sequence[str] = DEFAULT_SENTINEL_REMOTES,
) -> Decoration:
    """Turn one decoration string into a tag, an ordered ref list, or nothing.

    git uses the same field for both meanings. A `tag:` marker anywhere wins:
    the name after it (up to the next comma) is the tag and refs stay empty.
    """
    if TAG_MARKER in raw:
        name = raw.split(TAG_MARKER, 1)[1].split(",", 1)[0].strip()
        if name:
            return TagDecoration(name=name)
        return NoDecoration()

    names: list[str] = []
    for entry in raw.split(","):
        candidate = entry.strip()
        if not candidate or is_sentinel_ref(candidate, remote_names):
            continue
        if candidate.startswith(HEAD_POINTER_PREFIX):
            candidate = candidate[len(HEAD_POINTER_PREFIX):].strip()
        if candidate:
            names.append(candidate)

    if names:
        return ReferencesDecoration(names=names)
    return NoDecoration()
