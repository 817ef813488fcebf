import logging
from concurrent.futures import Future, ThreadPoolExecutor

from asciichat.broadcast import Dispatcher
from asciichat.config import Settings
from asciichat.errors import RenderError
from asciichat.registry import ClientRegistry, Participant
from asciichat.render import RenderRequest, format_header, render

logger = logging.getLogger(__name__)

RENDERING_MESSAGE = "* rendering ascii…"
ERROR_MESSAGE = "* ascii error: {error}"


class ChatService:
    """Registry, broadcast dispatcher and render workers behind one object.

    The dispatcher thread starts on construction; close() stops it along with
    the render pool. Render results travel through the same broadcast queue as
    chat messages.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.dispatcher = Dispatcher(lambda: self.registry.snapshot(), capacity=self.settings.bus_capacity)
        self.registry = ClientRegistry(self.dispatcher.publish, inbox_capacity=self.settings.inbox_capacity)
        self._renders = ThreadPoolExecutor(max_workers=self.settings.render_workers, thread_name_prefix="asciichat-render")
        self.dispatcher.start()

    def register(self, name: str) -> Participant:
        return self.registry.register(name)

    def unregister(self, participant: Participant) -> None:
        self.registry.unregister(participant)

    def rename(self, participant: Participant, name: str) -> str:
        return self.registry.rename(participant, name)

    def list_names(self) -> list[str]:
        return self.registry.list_names()

    def broadcast(self, message: str) -> bool:
        return self.dispatcher.publish(message)

    def request_render(self, request: RenderRequest) -> Future:
        """Schedule a render and return at once; the outcome arrives as a broadcast."""
        return self._renders.submit(self._render_task, request)

    def _render_task(self, request: RenderRequest) -> str:
        self.broadcast(RENDERING_MESSAGE)
        try:
            result = render(request, self.settings)
        except RenderError as e:
            logger.warning("Render of %s failed: %s", request.source, e)
            message = ERROR_MESSAGE.format(error=e)
        except Exception:
            logger.exception("Unexpected failure rendering %s", request.source)
            message = ERROR_MESSAGE.format(error="internal error")
        else:
            message = format_header(result, request) + "\n" + result.text
        self.broadcast(message)
        return message

    def close(self) -> None:
        self._renders.shutdown(wait=True)
        self.dispatcher.close()
        self.dispatcher.join()

    def __enter__(self) -> "ChatService":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
