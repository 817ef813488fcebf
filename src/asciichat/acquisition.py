import logging
import socket
import threading
import time
from pathlib import Path

import requests

from asciichat.config import HTTP_TIMEOUT, MAX_IMAGE_BYTES, USER_AGENT
from asciichat.errors import AcquisitionError, SizeLimitExceeded

logger = logging.getLogger(__name__)

ACCEPT = "image/avif,image/webp,image/apng,image/*;q=0.8,*/*;q=0.5"
CHUNK_SIZE = 64 * 1024


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def expand_home(source: str) -> Path:
    """Expand a leading ~/ to the user's home directory."""
    if source.startswith("~/"):
        return Path.home() / source[2:]
    return Path(source)


def read_file(path: str | Path, max_bytes: int = MAX_IMAGE_BYTES) -> bytes:
    try:
        with Path(path).open("rb") as f:
            data = f.read(max_bytes + 1)
    except OSError as e:
        raise AcquisitionError(f"cannot read {path}: {e.strerror or e}") from e
    if len(data) > max_bytes:
        raise SizeLimitExceeded(f"file too large (> {max_bytes} bytes)")
    return data


def _interrupt(resp, timed_out: threading.Event) -> None:
    """Shut down the socket under a streaming response so a blocked read returns."""
    timed_out.set()
    raw = getattr(resp, "raw", None)
    conn = getattr(raw, "connection", None) or getattr(raw, "_connection", None)
    sock = getattr(conn, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        # already closed by the peer
        pass


def fetch_url(
    url: str,
    max_bytes: int = MAX_IMAGE_BYTES,
    timeout: float = HTTP_TIMEOUT,
    user_agent: str = USER_AGENT,
) -> bytes:
    """GET a URL, enforcing the byte cap while streaming and an overall deadline.

    The cap is applied to the bytes actually received, whatever Content-Length says.
    A watchdog cuts the connection when the deadline passes, however slowly the
    server is still sending.
    """
    headers = {"User-Agent": user_agent, "Accept": ACCEPT}
    deadline = time.monotonic() + timeout
    timed_out = threading.Event()
    try:
        with requests.get(url, headers=headers, timeout=timeout, stream=True) as resp:
            if not 200 <= resp.status_code <= 299:
                raise AcquisitionError(f"http status {resp.status_code} {resp.reason or ''}".rstrip())
            watchdog = threading.Timer(max(0.0, deadline - time.monotonic()), _interrupt, (resp, timed_out))
            watchdog.daemon = True
            watchdog.start()
            chunks = []
            received = 0
            try:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    received += len(chunk)
                    if received > max_bytes:
                        raise SizeLimitExceeded(f"remote image too large (> {max_bytes} bytes)")
                    chunks.append(chunk)
            finally:
                watchdog.cancel()
            if timed_out.is_set():
                raise AcquisitionError(f"http request timed out after {timeout:g}s")
    except requests.Timeout as e:
        raise AcquisitionError(f"http request timed out after {timeout:g}s") from e
    except requests.RequestException as e:
        if timed_out.is_set():
            raise AcquisitionError(f"http request timed out after {timeout:g}s") from e
        raise AcquisitionError(f"http request failed: {e}") from e
    logger.debug("Fetched %d bytes from %s", received, url)
    return b"".join(chunks)


def load(
    source: str,
    max_bytes: int = MAX_IMAGE_BYTES,
    timeout: float = HTTP_TIMEOUT,
    user_agent: str = USER_AGENT,
) -> tuple[bytes, str]:
    """Read raw image bytes from a path or http(s) URL. Returns (data, label)."""
    if is_url(source):
        return fetch_url(source, max_bytes=max_bytes, timeout=timeout, user_agent=user_agent), source
    return read_file(expand_home(source), max_bytes=max_bytes), source
