'''
the goal is to implement a minimal scheme-like language
it's only a toy, which will not follow any scheme standard
and only support a small proportion of the features

the input of the language is a string, which will be transformed to tokens via Scanner (scheme_scanner)
then Reader transforms the tokens to expression trees of atoms and lists (scheme_reader)
finally each tree is evaluated directly against the global environment (scheme_evaluator)
the global environment is filled with primitives (scheme_primitives)

interpret() is the single entry point, by default it creates a fresh global environment per call
passing an environment keeps definitions across calls, e.g. for a REPL-like session
'''

import sys
from typing import Optional

from scheme_base import SchemePanic, scheme_flush
from scheme_env import Environment, env_lookup
from scheme_evaluator import evaluate_expr, evaluate_program, install_eval_rules
from scheme_primitives import install_primitives, make_global_env
from scheme_reader import install_stringify_expr_rules, read_expr, read_program, stringify_expr
from scheme_scanner import scan_source, stringify_token_full
from scheme_values import ListVal, NumberVal, install_is_equal_rules, install_stringify_value_rules, is_equal, \
    stringify_value


def install_rules():
    install_stringify_expr_rules()
    install_stringify_value_rules()
    install_is_equal_rules()
    install_eval_rules()
    install_primitives()


def interpret(source: str, env: Optional[Environment] = None):
    '''
    scan, read and evaluate source, return the value of the last top level expression
    any error raises SchemePanic (or exits, if panic is not suppressed)
    side effects before the error, e.g. define, are kept
    '''
    tokens = scan_source(source)
    expressions = read_program(tokens)
    if env is None:
        env = make_global_env()
    return evaluate_program(expressions, env)


install_rules()

# every scheme call level takes a dozen or so python frames
sys.setrecursionlimit(10000)


def test_one(source: str, **kargs: str):
    '''
    each test tries to execute the source code as much as possible
    capture the output, panic and result
    print them and compare to expected value
    '''

    # source
    source = source.strip()
    print('* source: %s' % source)
    try:
        # scan
        tokens = scan_source(source)
        token_str = ', '.join([stringify_token_full(t) for t in tokens])
        print('* tokens: %s' % token_str)
        if 'tokens' in kargs:
            assert token_str == kargs['tokens']

        # read
        expressions = read_program(tokens)
        expr_str = ' '.join([stringify_expr(expr) for expr in expressions])
        print('* expression: %s' % expr_str)
        if 'expression' in kargs:
            assert expr_str == kargs['expression']

        # evaluate
        glbenv = make_global_env()
        result = evaluate_program(expressions, glbenv)
        result_str = stringify_value(result)
        output_str = scheme_flush()
        if len(output_str):
            print('* output: %s' % output_str)
        if 'output' in kargs:
            assert output_str == kargs['output']
        print('* result: %s' % result_str)
        if 'result' in kargs:
            assert result_str == kargs['result']
    except SchemePanic as err:
        # any kind of panic
        scheme_flush()
        print('* panic: %s' % err.message)
        assert err.message == kargs['panic']
    print('----------')


def test_scan_and_read():
    test_one(
        '(if #t 1 2)',
        tokens='LEFT_PAREN, SYMBOL:if, BOOLEAN:#t, NUMBER:1, NUMBER:2, RIGHT_PAREN, EOF',
        expression='(if #t 1 2)',
        result='1'
    )
    test_one(
        '(begin (define r 10) (* 3 (* r r)))',
        expression='(begin (define r 10) (* 3 (* r r)))',
        result='300'
    )
    test_one(
        '(display\n"abc"',
        tokens='LEFT_PAREN, SYMBOL:display, STRING:abc, EOF',
        panic='parser error at LEFT_PAREN in line 1: unbalanced parenthesis, missing right parenthesis'
    )
    test_one(
        '',
        tokens='EOF',
        panic='parser error at EOF in line 1: unexpected end-of-stream token'
    )
    test_one(
        ')',
        expression='#<error unexpected )>',
        panic='runtime error at RIGHT_PAREN in line 1: unexpected )'
    )
    # the first expression is evaluated before the stray parenthesis is met
    test_one(
        '(display 1))',
        expression='(display 1) #<error unexpected )>',
        panic='runtime error at RIGHT_PAREN in line 1: unexpected )'
    )


def test_arithmetic():
    test_one('(+ 2 2)', result='4')
    test_one('(+ 2 2 3 5)', result='12')
    test_one('(- 6 2)', result='4')
    test_one('(- 8 2 3 2)', result='1')
    test_one('(* 8 2)', result='16')
    test_one('(* 8 2 2)', result='32')
    test_one('(/ 8 2 2)', result='2')
    test_one('(+ (* 3 5) (- 10 6))', result='19')
    test_one(' (if (> (* 11 11) 120) (* 7 6) oops) ', result='42')


def test_define_and_if():
    test_one('(begin (define x 4) x)', result='4')
    test_one(
        '''
        (define x 4)
        (define y 5)
        (+ x y)
        ''',
        result='9'
    )
    test_one('(if #t 1 2)', result='1')
    test_one('(if #f 1 2)', result='2')
    test_one('(if (< 1 2) 1 2)', result='1')
    # 0 and empty list are truthy
    test_one('(if 0 1 2)', result='1')
    test_one('(if (list) 1 2)', result='1')
    test_one(
        '(begin (define x 1) (if (= x 1) (display "a")) (if (= x 2) (display "b")))',
        output='a',
        result='#<undef>'
    )


def test_quote_and_list():
    test_one('(quote (1 2 3))', result='(1 2 3)')
    test_one('(quote (a (b c) "d"))', result='(a (b c) d)')
    test_one('(list 1 2 3)', result='(1 2 3)')
    test_one('(cdr (list 1 2 3))', result='(2 3)')
    test_one('(list (+ 1 2) (+ 3 4) (list 5 6))', result='(3 7 (5 6))')


def test_lambda():
    test_one('((lambda (x y) (+ x y 1)) 5 6)', result='12')
    test_one('(lambda () 1)', result='[procedure lambda]')
    test_one('+', result='[primitive +]')
    # closure
    test_one(
        '''
        (define make-adder (lambda (n) (lambda (x) (+ x n))))
        (define add2 (make-adder 2))
        (add2 40)
        ''',
        result='42'
    )
    # recursion through the defining environment
    test_one(
        '''
        (define count (lambda (n) (if (= n 0) 0 (+ n (count (- n 1))))))
        (count 10)
        ''',
        result='55'
    )
    test_one(
        '''
        (define factorial (lambda (n) (if (= n 1) 1 (* n (factorial (- n 1))))))
        (factorial 5)
        ''',
        result='120'
    )
    test_one(
        '((lambda (x y) (+ x y)) 1)',
        panic='runtime error at LEFT_PAREN in line 1: lambda expect exactly 2 arguments, but get 1'
    )
    test_one(
        '((lambda (a) (+ x 1)) 2)',
        panic='runtime error at SYMBOL:x in line 1: unbound variable'
    )
    test_one(
        '(1 2 3)',
        panic='runtime error at LEFT_PAREN in line 1: not callable: cannot call NumberVal value'
    )


def test_set():
    test_one(
        '(set! x 1)',
        panic='runtime error at SYMBOL:x in line 1: unbound variable'
    )
    # mutation
    test_one(
        '''
        (define a 1)
        (define incr (lambda () (set! a (+ a 1))))
        (incr)
        (incr)
        a
        ''',
        result='3'
    )
    # set! in a closure writes the enclosing frame, define writes the local one
    test_one(
        '''
        (define x 1)
        ((lambda (y) (set! x y)) 5)
        ((lambda (y) (define x y)) 7)
        x
        ''',
        result='5'
    )


def test_interpret():
    assert stringify_value(interpret('(+ 2 2)')) == '4'
    res = interpret('(quote (1 2 3))')
    assert isinstance(res, ListVal)
    assert [sv.value for sv in res.value if isinstance(sv, NumberVal)] == [1, 2, 3]
    # each call has its own global environment
    interpret('(define x 1)')
    try:
        interpret('x')
        assert False
    except SchemePanic as err:
        assert err.message == 'runtime error at SYMBOL:x in line 1: unbound variable'
    # unless the caller keeps one
    env = make_global_env()
    interpret('(define x 1)', env)
    assert stringify_value(interpret('(+ x 1)', env)) == '2'
    # no rollback, x is defined before the failure
    env = make_global_env()
    try:
        interpret('(define y 2) (car 1)', env)
        assert False
    except SchemePanic as err:
        assert err.message == 'runtime error at LEFT_PAREN in line 1: car requires a list, now NumberVal'
    assert stringify_value(env_lookup(env, 'y')) == '2'


def test_recursion_depth():
    test_one(
        '''
        (define count (lambda (n) (if (= n 0) 0 (+ n (count (- n 1))))))
        (count 100)
        ''',
        result='5050'
    )
    # no tail call elimination, too deep recursion is a panic, not a python error
    test_one(
        '''
        (define count (lambda (n) (if (= n 0) 0 (+ n (count (- n 1))))))
        (count 100000)
        ''',
        panic='runtime error: maximum recursion depth exceeded'
    )
    # the interpreter is still usable afterwards
    assert stringify_value(interpret('(+ 1 2)')) == '3'


def test_idempotence():
    expr = read_expr(scan_source('(begin (define x 3) ((lambda (y) (* x y)) 4))'))
    res1 = evaluate_expr(expr, make_global_env())
    res2 = evaluate_expr(expr, make_global_env())
    assert is_equal(res1, res2)
    assert stringify_value(res1) == '12'


def test():
    test_scan_and_read()
    test_arithmetic()
    test_define_and_if()
    test_quote_and_list()
    test_lambda()
    test_set()
    test_interpret()
    test_recursion_depth()
    test_idempotence()


if __name__ == '__main__':
    test()
