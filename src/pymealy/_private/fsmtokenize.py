#!/usr/bin/env python

"""Lazy tokenizer for FSM sources, with one token of push-back."""

import re as pyre
from typing import Iterator, Optional, TextIO, Tuple

from pymealy._private.exceptions import FSMLexicalError

Token = Tuple[str, Optional[str], int, int]   # (kind, value, line_num, column)

# prematch (skip this), groupname, core regex (capture this), postmatch (skip)
token_regexes = [
    (r'"', 'QUOTED', r'(?:\\[^\r\n]|[^"\\\r\n])*', r'"?'),           # Quoted label, may hold spaces
    (r"", 'EOL', r"\r\n|\r|\n", r""),                                 # Line ends are significant
    (r"", 'SKIPWS', r"[\x00-\x09\x0b\x0c\x0e-\x20]+", r""),            # Control chars and space
    (r"", 'WORD', r"[A-Za-z0-9_\-\u00a0-\U0010ffff]+", r""),          # Letters, digits, - _ and upper range
    (r"", 'CHAR', r".", r"")                                          # Anything else, e.g. ( and )
]
tok_regex = pyre.compile('|'.join('%s(?P<%s>%s)%s' % mtch for mtch in token_regexes), pyre.DOTALL)
line_regex = pyre.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+")

escapes = {'n': '\n', 't': '\t', 'r': '\r', 'f': '\f', 'b': '\b', 'a': '\a', 'v': '\v'}


def unescape(value: str) -> str:
    """Resolve backslash escapes inside a quoted label, e.g. '\\"' => '"'."""
    return pyre.sub(r"\\(.)", lambda mo: escapes.get(mo.group(1), mo.group(1)), value, flags=pyre.DOTALL)


class FSMTokenizer:
    """Splits a text stream into WORD, QUOTED, EOL, CHAR and EOF tokens.

       The stream is read one line at a time, only as far as tokens are requested.
       Once the input is exhausted, EOF is returned on every further call.
       The tokenizer never closes the stream; whoever opened it does that."""

    def __init__(self, stream: TextIO, name: str = '<fsm>'):
        self.stream = stream
        self.name = name
        self.line = ''              # Text of the line the current token is on
        self.current: Token = ('EOL', None, 0, 0)
        self._pushedback = False
        self._tokens = self._generate()

    def _lines(self) -> Iterator[str]:
        """Source lines with their line break. Streams only split on '\\n', so a
           chunk may hold several lines ended by a lone '\\r'."""
        chunks = iter(self.stream)
        line_num = 1
        while True:
            try:
                chunk = next(chunks)
            except StopIteration:
                return
            except UnicodeDecodeError as e:
                raise FSMLexicalError(f"cannot decode input: {e.reason}", (self.name, line_num, 1, '')) from e
            for line in line_regex.findall(chunk):
                yield line
                line_num += 1

    def _generate(self) -> Iterator[Token]:
        line_num = 0
        for line_num, line in enumerate(self._lines(), start=1):
            self.line = line.rstrip('\r\n')
            for mo in tok_regex.finditer(line):
                kind = mo.lastgroup
                if kind == 'SKIPWS':
                    continue
                value = mo.group(kind)
                if kind == 'QUOTED':
                    value = unescape(value)
                yield (kind, value, line_num, mo.start())
        self.line = ''
        while True:
            yield ('EOF', None, line_num + 1, 0)

    def next_token(self) -> Token:
        if self._pushedback:
            self._pushedback = False
        else:
            self.current = next(self._tokens)
        return self.current

    def push_back(self):
        """Make the next call to next_token() return the current token again."""
        self._pushedback = True

    def skip_line(self):
        """Discard tokens up to and including the next EOL. EOF is left in place."""
        while True:
            kind = self.next_token()[0]
            if kind == 'EOL':
                return
            if kind == 'EOF':
                self.push_back()
                return
