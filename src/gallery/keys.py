"""Object key minting for uploads.

Keys have the shape ``<prefix><epoch-ms>_<8 hex chars>_<basename>``. The
timestamp plus 32 random bits make accidental collisions negligible without
any coordination between concurrent callers.
"""

import re
import secrets
import time

DEFAULT_BASENAME = "file"

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(hint: str | None) -> str:
    """Reduce a client-supplied filename to a safe basename.

    Any directory component (``/`` or ``\\`` separated) is dropped and every
    character outside ``[A-Za-z0-9._-]`` becomes ``_``.

    Args:
        hint: The filename as sent by the client, possibly None or empty.

    Returns:
        A non-empty basename safe for use in an object key.
    """
    name = str(hint or "")
    name = re.split(r"[/\\]", name)[-1]
    name = _UNSAFE_RE.sub("_", name)
    return name or DEFAULT_BASENAME


def mint_key(
    prefix: str,
    filename_hint: str | None,
    now_ms: int | None = None,
    nonce: str | None = None,
) -> str:
    """Mint a new object key under ``prefix``.

    Args:
        prefix: The configured upload prefix (e.g. ``uploads/``).
        filename_hint: The client's filename, sanitized before use.
        now_ms: Epoch milliseconds; the current time when None.
        nonce: Hex nonce; 4 random bytes when None.

    Returns:
        The minted key.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    if nonce is None:
        nonce = secrets.token_hex(4)
    return f"{prefix}{now_ms}_{nonce}_{sanitize_filename(filename_hint)}"
