"""Row identifiers: lexicographically sortable ULIDs stored as 26-char strings."""

import ulid

ULID_LENGTH = 26


def generate_ulid() -> str:
    return str(ulid.ULID())
