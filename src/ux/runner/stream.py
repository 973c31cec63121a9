"""Line prefixing for streamed command output."""

from __future__ import annotations


class LinePrefixer:
    """Insert a prefix at the start of every output line.

    Chunks may end mid-line; the unterminated tail is passed through as-is and
    the prefix is deferred until the next chunk starts a new line.
    """

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.at_line_start = True

    def feed(self, text: str) -> str:
        parts: list[str] = []
        pos = 0
        while pos < len(text):
            if self.at_line_start:
                parts.append(self.prefix)
            idx = text.find("\n", pos)
            if idx < 0:
                parts.append(text[pos:])
                self.at_line_start = False
                break
            parts.append(text[pos : idx + 1])
            self.at_line_start = True
            pos = idx + 1
        return "".join(parts)

    def reset(self) -> None:
        self.at_line_start = True
