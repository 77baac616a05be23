"""Positional scanner over a source string. Matching never raises: a failed match is how the parser looks ahead."""

import re

from lambdalab.lang.error import ParseError


class Scanner:
    """A simple tokenization helper that advances an offset in a string."""

    def __init__(self, source=""):
        self.source = source
        self.offset = 0

    def reset(self, source):
        """Starts scanning source from its beginning."""
        self.source = source
        self.offset = 0

    def scan(self, pattern):
        """Matches pattern at the current offset. On success, advances the offset past the match and returns the
        matched text; otherwise returns None and leaves the offset where it was.
        """
        match = re.compile(pattern).match(self.source, self.offset)
        if match is None:
            return None
        self.offset = match.end()
        return match.group(0)

    def skip_whitespace(self):
        self.scan(r"\s*")

    def done(self):
        """Whether or not the entire string has been consumed."""
        return self.offset >= len(self.source)

    @property
    def rest(self):
        return self.source[self.offset:]

    def error(self, msg):
        """Creates a ParseError with the given message that refers to the current offset."""
        return ParseError(msg, self.offset, self.source)
