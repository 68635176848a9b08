'''
scheme scanner: string -> tokens
only support paranthesis, symbol, string, number, boolean

the scanner is total, it never raises
malformed text is passed on as best-effort tokens, and the reader decides what to do
  unterminated string still yields a string token with whatever was scanned
  number with more than one dot yields a number token whose literal is None

unlike a scanner that stops at the last character, we always append an EOF token
so the reader can detect exhaustion without checking the length
ref: https://craftinginterpreters.com/scanning.html
'''

import enum
from typing import List

from scheme_base import format_bool, format_float


@enum.unique
class TokenTag(enum.Enum):
    LEFT_PAREN = enum.auto()
    RIGHT_PAREN = enum.auto()
    SYMBOL = enum.auto()
    STRING = enum.auto()
    NUMBER = enum.auto()
    BOOLEAN = enum.auto()
    EOF = enum.auto()


class Token:
    '''token is simple and relatively fixed, we won't use different classes'''

    def __init__(self, tag: TokenTag, line: int, lexeme: str, literal):
        self.tag = tag
        self.line = line
        self.lexeme = lexeme
        self.literal = literal


def stringify_token(token: Token):
    if token.tag == TokenTag.NUMBER and token.literal is not None:
        return format_float(token.literal)
    elif token.tag == TokenTag.STRING:
        return token.literal
    elif token.tag == TokenTag.BOOLEAN:
        return format_bool(token.literal)
    else:
        return token.lexeme


def stringify_token_full(token: Token):
    if token.tag in (TokenTag.NUMBER, TokenTag.STRING, TokenTag.SYMBOL, TokenTag.BOOLEAN):
        return '%s:%s' % (token.tag.name, stringify_token(token))
    else:
        return token.tag.name


class Scanner:
    # instance vars
    _source: str
    _start: int
    _current: int
    _line: int
    _tokens: List[Token]

    def __init__(self):
        self._restart('')

    def scan(self, source: str):
        self._restart(source)
        while(not self._is_at_end()):
            self._scan_one_token()
            self._start = self._current
        self._tokens.append(Token(TokenTag.EOF, self._line, '', None))
        return self._tokens

    def _restart(self, source: str):
        self._source = source
        self._start = 0
        self._current = 0
        self._line = 0
        self._tokens: List[Token] = []

    def _scan_one_token(self):
        c = self._advance()
        if c == '(':
            self._add_token(TokenTag.LEFT_PAREN)
        elif c == ')':
            self._add_token(TokenTag.RIGHT_PAREN)
        elif c == '\n':
            self._scan_newline()
        elif c in ' \t\r':
            pass
        elif c == '#':
            self._scan_hash()
        elif c == '"':
            self._scan_string()
        elif Scanner._is_digit(c):
            self._scan_number()
        else:
            self._scan_symbol()

    def _is_at_end(self):
        return self._current >= len(self._source)

    def _advance(self):
        c = self._source[self._current]
        self._current += 1
        return c

    def _peek(self):
        return self._source[self._current]

    def _add_token(self, tag: TokenTag, literal=None):
        lexeme = self._source[self._start:self._current]
        self._tokens.append(Token(tag, self._line, lexeme, literal))

    def _scan_newline(self):
        self._line += 1

    def _scan_hash(self):
        '''only #t and #f are recognized, any other # starts a symbol'''
        if not self._is_at_end() and self._peek() == 't':
            self._advance()
            self._add_token(TokenTag.BOOLEAN, True)
        elif not self._is_at_end() and self._peek() == 'f':
            self._advance()
            self._add_token(TokenTag.BOOLEAN, False)
        else:
            self._scan_symbol()

    def _scan_string(self):
        while not self._is_at_end() and self._peek() != '"':
            if self._peek() == '\n':
                self._scan_newline()
            self._advance()

        if self._is_at_end():
            # unterminated, keep what we have
            literal = self._source[self._start+1:self._current]
        else:
            # consume ending "
            self._advance()
            # trim the surrounding quotes
            literal = self._source[self._start+1:self._current-1]
        self._add_token(TokenTag.STRING, literal)

    def _scan_number(self):
        while not self._is_at_end() and (Scanner._is_digit(self._peek()) or self._peek() == '.'):
            self._advance()
        substr = self._source[self._start:self._current]
        literal = float(substr) if substr.count('.') <= 1 else None
        self._add_token(TokenTag.NUMBER, literal)

    def _scan_symbol(self):
        while not self._is_at_end() and not Scanner._can_terminate_symbol(self._peek()):
            self._advance()
        self._add_token(TokenTag.SYMBOL)

    @staticmethod
    def _is_digit(c: str):
        return '0' <= c <= '9'

    @staticmethod
    def _can_terminate_symbol(c: str):
        return c in '() \r\n\t'


_scanner = Scanner()


def scan_source(source: str):
    return _scanner.scan(source)


def test_one(source: str, tokens: str):
    print('* source: %s' % source)
    token_str = ', '.join([stringify_token_full(t) for t in scan_source(source)])
    print('* tokens: %s' % token_str)
    assert token_str == tokens
    print('----------')


def test_scan():
    test_one(
        '',
        tokens='EOF'
    )
    test_one(
        '(if #t 1 2)',
        tokens='LEFT_PAREN, SYMBOL:if, BOOLEAN:#t, NUMBER:1, NUMBER:2, RIGHT_PAREN, EOF'
    )
    test_one(
        '(begin (define r 10) (* pi (* r r)))',
        tokens='LEFT_PAREN, SYMBOL:begin, LEFT_PAREN, SYMBOL:define, SYMBOL:r, NUMBER:10, RIGHT_PAREN, '
        'LEFT_PAREN, SYMBOL:*, SYMBOL:pi, LEFT_PAREN, SYMBOL:*, SYMBOL:r, SYMBOL:r, RIGHT_PAREN, RIGHT_PAREN, RIGHT_PAREN, EOF'
    )
    test_one(
        '("dog" 2.5 x)',
        tokens='LEFT_PAREN, STRING:dog, NUMBER:2.500, SYMBOL:x, RIGHT_PAREN, EOF'
    )
    test_one(
        '\t(set! x\r\n#f)',
        tokens='LEFT_PAREN, SYMBOL:set!, SYMBOL:x, BOOLEAN:#f, RIGHT_PAREN, EOF'
    )
    # hash without t or f is just a symbol
    test_one(
        '#x',
        tokens='SYMBOL:#x, EOF'
    )
    # digits stop at non digit, the rest is a symbol
    test_one(
        '12ab',
        tokens='NUMBER:12, SYMBOL:ab, EOF'
    )
    test_one(
        '(string-append "a b" null?)',
        tokens='LEFT_PAREN, SYMBOL:string-append, STRING:a b, SYMBOL:null?, RIGHT_PAREN, EOF'
    )


def test_malformed():
    # unterminated string still emitted
    test_one(
        '(display "abc)',
        tokens='LEFT_PAREN, SYMBOL:display, STRING:abc), EOF'
    )
    # malformed number is emitted without literal
    test_one(
        '1.2.3',
        tokens='NUMBER:1.2.3, EOF'
    )
    tokens = scan_source('1.2.3')
    assert tokens[0].literal is None


def test_token_fields():
    tokens = scan_source('(x\n"dog" 2)')
    assert [t.tag for t in tokens] == [
        TokenTag.LEFT_PAREN, TokenTag.SYMBOL, TokenTag.STRING, TokenTag.NUMBER, TokenTag.RIGHT_PAREN, TokenTag.EOF]
    assert tokens[1].lexeme == 'x'
    assert tokens[1].literal is None
    assert tokens[2].lexeme == '"dog"'
    assert tokens[2].literal == 'dog'
    assert tokens[2].line == 1
    assert tokens[3].literal == 2.0
    assert scan_source('(#t)')[1].literal == True


def test():
    test_scan()
    test_malformed()
    test_token_fields()


if __name__ == '__main__':
    test()
