"""Line framing shared by both relay directions.

Lines are separated by any run of carriage-return and line-feed characters,
so ``\\r\\n``, ``\\n`` and blank lines all collapse into a single boundary.
Empty segments are never emitted.
"""

import codecs
import re
from typing import List

LINE_BREAKS = re.compile(r"[\r\n]+")


def split_lines(text: str) -> List[str]:
    """Split text into its non-empty lines, preserving order."""
    return [line for line in LINE_BREAKS.split(text) if line]


class LineDecoder:
    """Incremental bytes-to-lines decoder for a stream connection.

    Every read is split on its own: a segment without a terminator is
    emitted with the read that carried it, so prompts such as ``login: ``
    reach the client without waiting for more data. Malformed byte
    sequences are replaced rather than rejected, and a multi-byte character
    split across two reads decodes correctly.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    def feed(self, data: bytes) -> List[str]:
        """Consume a chunk of bytes and return its non-empty segments."""
        return split_lines(self._decoder.decode(data))

    def flush(self) -> List[str]:
        """Return whatever the decoder still holds once the stream has ended."""
        return split_lines(self._decoder.decode(b"", final=True))
