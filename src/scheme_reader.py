'''
reader: tokens -> expressions

it's a very simple recursive descent over an explicit cursor, the token list itself is never modified
ref: https://craftinginterpreters.com/parsing-expressions.html

expr -> atom | list;
atom -> SYMBOL | STRING | NUMBER | BOOLEAN
list -> LEFT_PAREN ( expr )* RIGHT_PAREN;

the reader has no knowledge of semantics, so define, if, lambda are all plain lists here
special forms are recognized later by the evaluator, looking at the head symbol

a stray right parenthesis where an expression is expected does not abort the read
instead it becomes an ErrorAtom, and evaluating it raises runtime error
all other structural problems (missing right parenthesis, reading past EOF) are raised immediately
'''

from typing import Callable, Dict, List, Type

from scheme_base import SchemePanic, format_bool, format_float, scheme_panic
from scheme_scanner import Token, TokenTag, scan_source, stringify_token_full


class SchemeParserError(Exception):
    def __init__(self, token: Token, message: str):
        self.token = token
        self.message = message

    def __str__(self) -> str:
        return 'parser error at %s in line %d: %s' % (stringify_token_full(self.token), self.token.line+1, self.message)


'''
define different types of expressions as difference classes for better type checking
every expression stores the token marking its position, list stores its LEFT_PAREN
expressions are never modified after reading, so one tree can be evaluated many times
'''


class Expression:
    pass


class SymbolAtom(Expression):
    def __init__(self, token: Token):
        self.token = token
        self.name: str = token.lexeme


class StringAtom(Expression):
    def __init__(self, token: Token):
        self.token = token
        self.value: str = token.literal


class NumberAtom(Expression):
    def __init__(self, token: Token):
        self.token = token
        self.value: float = token.literal


class BooleanAtom(Expression):
    def __init__(self, token: Token):
        self.token = token
        self.value: bool = token.literal


class ErrorAtom(Expression):
    '''malformed structure carried as data, e.g. a stray right parenthesis'''

    def __init__(self, token: Token, message: str):
        self.token = token
        self.message = message


class ListExpr(Expression):
    def __init__(self, paren: Token, items: List[Expression]):
        self.paren = paren
        self.items = items


ReaderFuncType = Callable[[Token], Expression]


class Reader:
    _rules: Dict[TokenTag, ReaderFuncType]
    _tokens: List[Token]
    _current: int

    def __init__(self):
        self._rules = {
            TokenTag.SYMBOL: self._read_symbol,
            TokenTag.NUMBER: self._read_number,
            TokenTag.STRING: self._read_string,
            TokenTag.BOOLEAN: self._read_boolean,
            TokenTag.LEFT_PAREN: self._read_left_paren,
            TokenTag.RIGHT_PAREN: self._read_right_paren,
            TokenTag.EOF: self._read_eof
        }
        self._restart([])

    def read(self, tokens: List[Token]):
        '''read one expression, the cursor stops right after it'''
        self._restart(tokens)
        return self._read_recursive()

    def read_all(self, tokens: List[Token]):
        '''read expressions until EOF, there should be at least one'''
        self._restart(tokens)
        expressions = [self._read_recursive()]
        while not self._is_at_end() and self._peek().tag != TokenTag.EOF:
            expressions.append(self._read_recursive())
        return expressions

    def _restart(self, tokens: List[Token]):
        self._tokens = tokens
        self._current = 0

    def _read_recursive(self) -> Expression:
        if self._is_at_end():
            raise SchemeParserError(self._last_token(), 'premature end of input')
        token = self._advance()
        return self._rules[token.tag](token)

    def _read_symbol(self, token: Token):
        return SymbolAtom(token)

    def _read_number(self, token: Token):
        if token.literal is None:
            raise SchemeParserError(token, 'malformed number')
        return NumberAtom(token)

    def _read_string(self, token: Token):
        return StringAtom(token)

    def _read_boolean(self, token: Token):
        return BooleanAtom(token)

    def _read_left_paren(self, token: Token):
        items: List[Expression] = []
        while not self._is_at_end() and self._peek().tag not in (TokenTag.RIGHT_PAREN, TokenTag.EOF):
            items.append(self._read_recursive())
        if self._is_at_end() or self._peek().tag != TokenTag.RIGHT_PAREN:
            raise SchemeParserError(token, 'unbalanced parenthesis, missing right parenthesis')
        self._advance()  # consume right parenthesis
        return ListExpr(token, items)

    def _read_right_paren(self, token: Token):
        return ErrorAtom(token, 'unexpected )')

    def _read_eof(self, token: Token):
        raise SchemeParserError(token, 'unexpected end-of-stream token')

    def _is_at_end(self):
        return self._current >= len(self._tokens)

    def _advance(self):
        token = self._tokens[self._current]
        self._current += 1
        return token

    def _peek(self):
        return self._tokens[self._current]

    def _last_token(self):
        if len(self._tokens):
            return self._tokens[-1]
        return Token(TokenTag.EOF, 0, '', None)


_reader = Reader()


def read_expr(tokens: List[Token]):
    try:
        return _reader.read(tokens)
    except SchemeParserError as err:
        scheme_panic(str(err))


def read_program(tokens: List[Token]):
    try:
        return _reader.read_all(tokens)
    except SchemeParserError as err:
        scheme_panic(str(err))


'''expression stringifier, printing expressions back in source form'''

StringifyExprFuncType = Callable[[Expression], str]

_stringify_expr_rules: Dict[Type, StringifyExprFuncType] = {}


def update_stringify_expr_rules(rules: Dict[Type, StringifyExprFuncType]):
    _stringify_expr_rules.update(rules)


def stringify_expr(expr: Expression):
    f = _stringify_expr_rules[type(expr)]
    return f(expr)


def stringify_expr_symbol(expr: SymbolAtom):
    return expr.name


def stringify_expr_string(expr: StringAtom):
    return '"%s"' % expr.value


def stringify_expr_number(expr: NumberAtom):
    return format_float(expr.value)


def stringify_expr_boolean(expr: BooleanAtom):
    return format_bool(expr.value)


def stringify_expr_error(expr: ErrorAtom):
    return '#<error %s>' % expr.message


def stringify_expr_list(expr: ListExpr):
    return '(%s)' % (' '.join([stringify_expr(subexpr) for subexpr in expr.items]))


def install_stringify_expr_rules():
    rules = {
        SymbolAtom: stringify_expr_symbol,
        StringAtom: stringify_expr_string,
        NumberAtom: stringify_expr_number,
        BooleanAtom: stringify_expr_boolean,
        ErrorAtom: stringify_expr_error,
        ListExpr: stringify_expr_list
    }
    update_stringify_expr_rules(rules)


def test_one(source: str, **kargs: str):
    print('* source: %s' % source)
    try:
        expressions = read_program(scan_source(source))
        expr_str = ' '.join([stringify_expr(expr) for expr in expressions])
        print('* expression: %s' % expr_str)
        assert expr_str == kargs['expression']
    except SchemePanic as err:
        print('* panic: %s' % err.message)
        assert err.message == kargs['panic']
    print('----------')


def test_read():
    test_one(
        '(x)',
        expression='(x)'
    )
    test_one(
        '(+ x (+ 2 5))',
        expression='(+ x (+ 2 5))'
    )
    test_one(
        '(set x #t "s" 1.5)',
        expression='(set x #t "s" 1.500)'
    )
    test_one(
        '  ( define   (f)\n  ())',
        expression='(define (f) ())'
    )
    test_one(
        '(define a 1) (set! a 2)',
        expression='(define a 1) (set! a 2)'
    )


def test_read_error():
    test_one(
        '',
        panic='parser error at EOF in line 1: unexpected end-of-stream token'
    )
    test_one(
        '(display\n"abc"',
        panic='parser error at LEFT_PAREN in line 1: unbalanced parenthesis, missing right parenthesis'
    )
    test_one(
        '(+ 1.2.3 4)',
        panic='parser error at NUMBER:1.2.3 in line 1: malformed number'
    )
    # stray right parenthesis is data, not an error
    test_one(
        ')',
        expression='#<error unexpected )>'
    )
    test_one(
        '(+ 1 2))',
        expression='(+ 1 2) #<error unexpected )>'
    )


def test_cursor():
    tokens = scan_source('(+ 1 (* 2 3))')
    reader = Reader()
    expr = reader.read(tokens)
    assert isinstance(expr, ListExpr)
    assert len(expr.items) == 3
    assert isinstance(expr.items[0], SymbolAtom) and expr.items[0].name == '+'
    assert isinstance(expr.items[1], NumberAtom) and expr.items[1].value == 1.0
    assert isinstance(expr.items[2], ListExpr)
    # only the sentinel is left, and the token list is untouched
    assert reader._peek().tag == TokenTag.EOF
    assert len(tokens) == 10 and tokens[-1].tag == TokenTag.EOF
    # reading past the sentinel
    try:
        reader.read([])
        assert False
    except SchemeParserError as err:
        assert err.message == 'premature end of input'


def test():
    test_read()
    test_read_error()
    test_cursor()


if __name__ == '__main__':
    install_stringify_expr_rules()
    test()
