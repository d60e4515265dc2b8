"""Terminal output for search results."""

import re

from rich.console import Console
from rich.text import Text

from .core.models import LineRecord, SearchResult

_EMPHASIS_RE = re.compile(r"<em>(.*?)</em>", re.DOTALL)


def emphasize(line: str) -> Text:
    """Bold the ``<em>`` spans of a highlighted line.

    Everything else is kept literally, log lines often contain brackets that
    must not be read as rich markup.
    """
    text = Text()
    pos = 0
    for m in _EMPHASIS_RE.finditer(line):
        text.append(line[pos:m.start()])
        text.append(m.group(1), style="bold")
        pos = m.end()
    text.append(line[pos:])
    return text


def to_text(line: LineRecord) -> Text:
    return emphasize(line.text) if line.marked else Text(line.text)


def render(result: SearchResult, console: Console) -> None:
    """Print lines oldest first, so the newest ends up next to the prompt."""
    for line in reversed(result.lines):
        console.print(to_text(line), soft_wrap=True, highlight=False)
