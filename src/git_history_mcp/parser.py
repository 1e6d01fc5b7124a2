"""Record and field splitting for `git log -z` output."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .constants import FIELD_SEPARATOR, RECORD_SEPARATOR
from .dates import decode_author_date
from .models import Commit
from .refs import DEFAULT_SENTINEL_REMOTES, classify_decoration


@dataclass(frozen=True)
class CommitFields:
    """Positional fields of one record, each defaulted to an empty string."""

    short_hash: str = ""
    full_hash: str = ""
    subject: str = ""
    author_name: str = ""
    author_email: str = ""
    committer_name: str = ""
    committer_email: str = ""
    author_date: str = ""
    body: str = ""
    decoration: str = ""

    @classmethod
    def from_parts(cls, parts: list[str]) -> CommitFields:
        def _at(index: int) -> str:
            return parts[index] if index < len(parts) else ""

        return cls(
            short_hash=_at(0),
            full_hash=_at(1),
            subject=_at(2),
            author_name=_at(3),
            author_email=_at(4),
            committer_name=_at(5),
            committer_email=_at(6),
            author_date=_at(7),
            body=_at(8),
            decoration=_at(9),
        )


def split_records(output: str) -> list[str]:
    """Split raw output into one chunk per commit, dropping blank chunks."""
    records: list[str] = []
    for chunk in output.split(RECORD_SEPARATOR):
        chunk = chunk.lstrip("\n")
        if chunk.strip():
            records.append(chunk)
    return records


def split_fields(record: str) -> CommitFields:
    return CommitFields.from_parts(record.split(FIELD_SEPARATOR))


def build_commit(
    fields: CommitFields,
    remote_url: str | None = None,
    now_fn: Callable[[], datetime] | None = None,
    remote_names: Sequence[str] = DEFAULT_SENTINEL_REMOTES,
) -> Commit:
    decoded_date = decode_author_date(fields.author_date, now_fn=now_fn)
    return Commit(
        short_hash=fields.short_hash,
        full_hash=fields.full_hash,
        subject=fields.subject,
        author_name=fields.author_name,
        author_email=fields.author_email,
        committer_name=fields.committer_name,
        committer_email=fields.committer_email,
        body=fields.body,
        date=decoded_date.value,
        date_parsed=decoded_date.parsed,
        decoration=classify_decoration(fields.decoration, remote_names),
        remote_url=remote_url,
    )


def parse_commit(
    record: str,
    remote_url: str | None = None,
    now_fn: Callable[[], datetime] | None = None,
    remote_names: Sequence[str] = DEFAULT_SENTINEL_REMOTES,
) -> Commit:
    return build_commit(
        split_fields(record),
        remote_url=remote_url,
        now_fn=now_fn,
        remote_names=remote_names,
    )


def parse_log_output(
    output: str,
    remote_url: str | None = None,
    now_fn: Callable[[], datetime] | None = None,
    remote_names: Sequence[str] = DEFAULT_SENTINEL_REMOTES,
) -> list[Commit]:
    """Decode every record in `output`, preserving the order git emitted them.

    Decoding never raises for malformed records: missing fields become empty
    strings, an unparseable date becomes the current time. `remote_names`
    lists the remotes whose `<remote>/HEAD` pointer is dropped from refs.
    """
    return [
        parse_commit(record, remote_url=remote_url, now_fn=now_fn, remote_names=remote_names)
        for record in split_records(output)
    ]
