"""Link resolution and rendering."""

import logging
import re
from enum import Enum

logger = logging.getLogger(__name__)

IGNORED_TARGET = re.compile(r"^(javascript:|mailto:|#)", re.IGNORECASE)
ABSOLUTE_URL = re.compile(r"^([a-z][a-z0-9.+-]+:)", re.IGNORECASE)


class LinkMode(str, Enum):
    """How anchor targets are rendered in the output text."""

    NONE = "none"
    INLINE = "inline"
    NEXTLINE = "nextline"
    TABLE = "table"
    BBCODE = "bbcode"


class LinkList:
    """URLs collected for the reference section appended after the text."""

    def __init__(self):
        self._urls: list[str] = []

    def add(self, url: str) -> int:
        """Add a URL unless already present and return its 1-based index."""
        if url not in self._urls:
            self._urls.append(url)
        return self._urls.index(url) + 1

    def render(self) -> str:
        """Render the collected URLs as a ``Links:`` section.

        Returns:
            The section text, or an empty string when nothing was collected.
        """
        if not self._urls:
            return ""
        lines = [f"[{index}] {url}\n" for index, url in enumerate(self._urls, start=1)]
        return "\n\nLinks:\n------\n" + "".join(lines)

    def __len__(self) -> int:
        return len(self._urls)

    def __iter__(self):
        return iter(self._urls)


def resolve_url(link: str, base_url: str) -> str:
    """Resolve ``link`` against ``base_url``.

    Links that carry a scheme are returned as they are. Anything else is
    appended to the base URL, adding a slash when the link has none.
    """
    if ABSOLUTE_URL.match(link):
        return link
    separator = "" if link.startswith("/") else "/"
    return f"{base_url}{separator}{link}"


def parse_link_mode(value: "LinkMode | str") -> LinkMode:
    """Convert a configured link mode to a ``LinkMode``.

    Raises:
        ValueError: If the value names no known mode.
    """
    try:
        return LinkMode(value.lower() if isinstance(value, str) else value)
    except ValueError:
        choices = ", ".join(mode.value for mode in LinkMode)
        raise ValueError(f"Unsupported link mode {value!r} (expected one of: {choices})") from None


def render_link(
    link: str,
    display: str,
    mode: LinkMode,
    base_url: str,
    links: LinkList,
    override: str | None = None,
) -> str:
    """Render an anchor as plain text.

    Args:
        link: Raw href value.
        display: Anchor contents.
        mode: Configured link mode.
        base_url: Base URL for relative links.
        links: Link list collecting URLs in table mode.
        override: Per-anchor mode name, taking precedence over ``mode``.

    Returns:
        The text that replaces the anchor.
    """
    if override:
        try:
            mode = LinkMode(override)
        except ValueError:
            logger.debug("Unknown link override %r, rendering inline", override)
            mode = LinkMode.INLINE

    if mode is LinkMode.NONE:
        return display

    if IGNORED_TARGET.match(link):
        return display

    url = resolve_url(link, base_url)

    if mode is LinkMode.TABLE:
        return f"{display} [{links.add(url)}]"
    elif mode is LinkMode.NEXTLINE:
        return f"{display}\n[{url}]"
    elif mode is LinkMode.BBCODE:
        return f"[url={url}]{display}[/url]"
    else:
        return f"{display} [{url}]"
