"""Source context rendering for matched lines."""
from typing import List

from refscan.config import DEFAULT_CONTEXT_AFTER, DEFAULT_CONTEXT_BEFORE

MATCH_MARKER = '>'


class ContextExtractor:
    """Render a numbered window of lines around a match.

    Example for line 2 with a 1/1 window:

          1: import { foo } from 'x';
        > 2: foo();
          3: obj.foo();
    """

    def __init__(self, before: int = DEFAULT_CONTEXT_BEFORE, after: int = DEFAULT_CONTEXT_AFTER):
        self.before = max(0, before)
        self.after = max(0, after)

    def render(self, text: str, line: int) -> str:
        """Render the window around a 1-based line, clamped to the file."""
        return self.render_lines(split_lines(text), line)

    def render_lines(self, lines: List[str], line: int) -> str:
        """Same as render() for text already split with split_lines()."""
        if not lines:
            return ''

        start = max(1, line - self.before)
        end = min(len(lines), line + self.after)
        if start > end:
            # Target lies entirely outside the file: show the nearest edge
            start = end = max(1, min(line, len(lines)))

        width = len(str(end))
        rendered = []
        for number in range(start, end + 1):
            marker = MATCH_MARKER if number == line else ' '
            rendered.append(f"{marker} {number:>{width}}: {lines[number - 1]}")
        return '\n'.join(rendered)


def split_lines(text: str) -> List[str]:
    """Split on '\\n' only (matching the parser's line numbering), dropping the '\\r' of CRLF endings."""
    lines = text.split('\n')
    if lines and lines[-1] == '' and len(lines) > 1:
        # Trailing newline does not start a new line
        lines.pop()
    return [line[:-1] if line.endswith('\r') else line for line in lines]
