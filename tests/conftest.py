import io
import queue
import time

import pytest
from PIL import Image, features

from asciichat.config import Settings
from asciichat.service import ChatService

needs_webp = pytest.mark.skipif(not features.check("webp"), reason="Pillow built without WEBP support")


def image_bytes(image: Image.Image, format: str = "PNG") -> bytes:
    buf = io.BytesIO()
    image.save(buf, format=format)
    return buf.getvalue()


def collect_until(inbox, predicate, timeout=5.0):
    """Read messages from an inbox until one satisfies predicate. Returns everything read."""
    seen = []
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise AssertionError(f"no matching message within {timeout}s, got {seen!r}")
        try:
            message = inbox.get(timeout=remaining)
        except queue.Empty:
            continue
        seen.append(message)
        if predicate(message):
            return seen


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.005)


@pytest.fixture
def service():
    svc = ChatService(Settings(render_workers=2))
    yield svc
    svc.close()
