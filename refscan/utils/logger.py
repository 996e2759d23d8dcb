"""Terminal-safe diagnostic text with Unicode fallback.

Detects whether the diagnostic stream (stderr) can encode UTF-8 and provides
ASCII alternatives for the icons used in refscan's diagnostics so legacy
Windows consoles do not crash on them.
"""
import locale
import sys
from typing import TextIO


# Unicode to ASCII icon mapping for Windows compatibility
ICON_MAP = {
    # Status icons
    '✓': '[OK]',
    '✔': '[OK]',
    '✗': '[FAIL]',
    '✘': '[FAIL]',
    '⚠': '[WARN]',
    '⚠️': '[WARN]',

    # Arrows (also used in context markers shown on the console)
    '→': '->',
    '←': '<-',
    '⇒': '=>',

    # Structural icons
    '│': '|',
    '─': '-',

    # Symbols
    '…': '...',
    '•': '*',
    '🔍': '[search]',
    '📁': '[dir]',
    '📄': '[file]',
    '📊': '[stats]',
}


def detect_terminal_encoding(stream: TextIO = None) -> str:
    """Detect the encoding of a stream, defaulting to stderr.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    stream = stream if stream is not None else sys.stderr
    if hasattr(stream, 'encoding') and stream.encoding:
        return stream.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (LookupError, ValueError):
        return 'ascii'


def is_utf8_capable(stream: TextIO = None) -> bool:
    """Check if the stream can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding(stream).replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str, stream: TextIO = None) -> str:
    """Replace Unicode icons with ASCII equivalents if the stream isn't UTF-8.

    Args:
        text: Text potentially containing Unicode icons
        stream: Stream the text is written to (stderr when omitted)

    Returns:
        str: Sanitized text safe for the stream
    """
    if is_utf8_capable(stream):
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)

    return sanitized
