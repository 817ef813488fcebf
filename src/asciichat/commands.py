import logging
import queue
from collections.abc import Iterator

from asciichat.charsets import DEFAULT_RAMP
from asciichat.errors import InboxClosed
from asciichat.rasterizer import MAX_WIDTH, MIN_WIDTH
from asciichat.render import RenderRequest, resolve_width
from asciichat.service import ChatService

logger = logging.getLogger(__name__)

HELP_LINES = [
    '* Commands: /help /list /nick <name> /ascii <path|url> [--w=80] [--color] [--invert] [--charset="@%#*+=-:. "] /quit',
    "* Tip: Use `|` between phrases to send multiple lines at once.",
]
NICK_USAGE = "* usage: /nick <newname>"
ASCII_USAGE = '* usage: /ascii <path-or-url> [--w=80] [--color] [--invert] [--charset="@%#*+=-:. "]'
UNKNOWN_COMMAND = "* Unknown command. Try /help"


def split_args(line: str) -> list[str]:
    """Split a command line on whitespace, keeping "quoted strings" together.

    Inside quotes a backslash escapes a double quote; any other escape is kept
    literally. The quotes themselves are dropped.
    """
    args = []
    cur: list[str] = []
    in_quotes = False
    escape = False
    for ch in line:
        if in_quotes and escape:
            cur.append(ch if ch == '"' else "\\" + ch)
            escape = False
        elif in_quotes and ch == "\\":
            escape = True
        elif ch == '"':
            in_quotes = not in_quotes
        elif not in_quotes and ch in " \t":
            if cur:
                args.append("".join(cur))
                cur = []
        else:
            cur.append(ch)
    if cur:
        args.append("".join(cur))
    return args


def split_lines(text: str) -> list[str]:
    """Split a message on | (or a literal \\n) into separate non-empty lines."""
    parts = text.replace("\\n", "|").split("|")
    return [p.strip() for p in parts if p.strip()]


def parse_render_args(args: list[str], display_width: int = 0, default_width: int = 80) -> RenderRequest | None:
    """Build a render request from /ascii arguments. Returns None when no source is given."""
    source = None
    width = default_width
    fit = colorize = invert = False
    charset = DEFAULT_RAMP
    for arg in args:
        if arg.startswith("--w="):
            try:
                w = int(arg[len("--w=") :])
            except ValueError:
                continue
            if MIN_WIDTH <= w <= MAX_WIDTH:
                width = w
        elif arg == "--color":
            colorize = True
        elif arg == "--invert":
            invert = True
        elif arg == "--fit":
            fit = True
        elif arg.startswith("--charset="):
            value = arg[len("--charset=") :].strip('"')
            if value:
                charset = value
        elif not arg.startswith("--") and source is None:
            source = arg
    if source is None:
        return None
    width = resolve_width(width, fit=fit, display_width=display_width, default_width=default_width)
    return RenderRequest(source=source, width=width, colorize=colorize, invert=invert, charset=charset)


class ChatSession:
    """One participant's view of the chat, driven by lines of user input.

    handle() returns lines meant only for this participant; everything else
    reaches them through their inbox like any other broadcast.
    """

    def __init__(self, service: ChatService, name: str, display_width: int = 0):
        self.service = service
        self.display_width = display_width
        self.participant = service.register(name)
        self.closed = False

    @property
    def name(self) -> str:
        return self.participant.name

    def handle(self, line: str) -> list[str]:
        raw = line.strip()
        if not raw or self.closed:
            return []
        if raw.startswith("/"):
            return self._command(raw)
        for part in split_lines(raw):
            self.service.broadcast(f"[{self.name}] {part}")
        return []

    def _command(self, raw: str) -> list[str]:
        parts = split_args(raw)
        if not parts:
            return []
        cmd = parts[0].lower()
        if cmd == "/help":
            return list(HELP_LINES)
        if cmd == "/list":
            return ["* users: " + ", ".join(self.service.list_names())]
        if cmd == "/nick":
            if len(parts) < 2:
                return [NICK_USAGE]
            self.service.rename(self.participant, parts[1])
            return []
        if cmd == "/ascii":
            request = parse_render_args(
                parts[1:], display_width=self.display_width, default_width=self.service.settings.default_width
            )
            if request is None:
                return [ASCII_USAGE]
            logger.debug("%s requested render of %s", self.name, request.source)
            self.service.request_render(request)
            return []
        if cmd in ("/quit", "/exit"):
            self.close()
            return []
        return [UNKNOWN_COMMAND]

    def messages(self, timeout: float | None = None) -> Iterator[str]:
        """Yield delivered messages until the session closes.

        With a timeout, stops after waiting that long for the next message.
        """
        while True:
            try:
                yield self.participant.inbox.get(timeout)
            except (InboxClosed, queue.Empty):
                return

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.service.unregister(self.participant)
