'''
evaluator: expression tree + environment -> value

the reader gives us plain atoms and lists, so dispatching happens in two levels
first by expression type via _eval_rules
then for non-empty list, by the head symbol via _eval_list_rules
if the head symbol is not a special form (define, if, quote, set!, lambda), the list is a call

operations are functions outside class, extensible by rules
the rules are defined in global variable to defer configuration, see install_eval_rules

evaluation is plain recursion on the python stack, there is no tail call elimination
so very deep recursion in scheme code can exhaust the python stack
'''

import inspect
from typing import Any, Callable, Dict, List, Optional, Set, Type, TypeVar, Union

from scheme_base import SchemePanic, find_type, scheme_panic
from scheme_env import Environment, SchemeEnvError, SchemeVal, env_extend, env_define, env_lookup, env_set
from scheme_reader import BooleanAtom, ErrorAtom, Expression, ListExpr, NumberAtom, StringAtom, SymbolAtom, \
    install_stringify_expr_rules, read_program
from scheme_scanner import Token, scan_source, stringify_token_full
from scheme_values import BooleanVal, ListVal, NumberVal, PrimVal, ProcVal, StringVal, SymbolVal, UndefVal, \
    install_is_equal_rules, install_stringify_value_rules, is_truthy, stringify_value


class SchemePrimError(Exception):
    '''raised inside primitives, without position, evaluator attaches the call position'''

    def __init__(self, message):
        self.message = message


class SchemeRuntimeError(Exception):
    def __init__(self, token: Optional[Token], message: str):
        self.token = token
        self.message = message

    def __str__(self) -> str:
        if self.token is None:
            return 'runtime error: %s' % self.message
        return 'runtime error at %s in line %d: %s' % (stringify_token_full(self.token), self.token.line+1, self.message)


GenericExpr = TypeVar('GenericExpr', bound=Expression)

EvalRecurFuncType = Callable[[Expression, Environment], SchemeVal]
EvalFuncType = Callable[[Expression, Environment, EvalRecurFuncType], SchemeVal]

_eval_rules: Dict[Type, EvalFuncType] = {}
_eval_list_rules: Dict[str, EvalFuncType] = {}


def update_eval_rules(rules: Dict[Type, EvalFuncType]):
    _eval_rules.update(rules)


def update_eval_list_rules(rules: Dict[str, EvalFuncType]):
    _eval_list_rules.update(rules)


def evaluate_recursive(expr: Expression, env: Environment) -> SchemeVal:
    t = find_type(type(expr), _eval_rules)
    if t not in _eval_rules:
        raise SchemeRuntimeError(None, 'unknown expression %s' % type(expr).__name__)
    f = _eval_rules[t]
    return f(expr, env, evaluate_recursive)


def evaluate_expr(expr: Expression, env: Environment):
    try:
        return evaluate_recursive(expr, env)
    except SchemeRuntimeError as err:
        scheme_panic(str(err))
    except RecursionError:
        scheme_panic(str(SchemeRuntimeError(None, 'maximum recursion depth exceeded')))


def evaluate_program(expressions: List[Expression], env: Environment):
    '''evaluate top level expressions in order, return the last'''
    res: SchemeVal = UndefVal()
    for expr in expressions:
        res = evaluate_expr(expr, env)
    return res


'''
evaluator rule definitions
'''

EvalRuleType = Union[
    Callable[[], SchemeVal],
    Callable[[GenericExpr], SchemeVal],
    Callable[[GenericExpr, Environment], SchemeVal],
    Callable[[GenericExpr, Environment, EvalRecurFuncType], SchemeVal],
]


def eval_rule_decorator(rule_func: EvalRuleType):
    arity = len(inspect.getfullargspec(rule_func).args)

    def _eval_rule_wrapped(expr: Expression, env: Environment, evl: EvalRecurFuncType):
        args: List[Any] = [expr, env, evl]
        return rule_func(*args[0:arity])
    return _eval_rule_wrapped


@eval_rule_decorator
def eval_symbol(expr: SymbolAtom, env: Environment):
    try:
        return env_lookup(env, expr.name)
    except SchemeEnvError:
        raise SchemeRuntimeError(expr.token, 'unbound variable')


@eval_rule_decorator
def eval_string(expr: StringAtom):
    return StringVal(expr.value)


@eval_rule_decorator
def eval_number(expr: NumberAtom):
    return NumberVal(expr.value)


@eval_rule_decorator
def eval_boolean(expr: BooleanAtom):
    return BooleanVal(expr.value)


@eval_rule_decorator
def eval_error(expr: ErrorAtom):
    '''a stray right parenthesis is reported only when someone tries to evaluate it'''
    raise SchemeRuntimeError(expr.token, expr.message)


@eval_rule_decorator
def eval_list(expr: ListExpr, env: Environment, evl: EvalRecurFuncType):
    '''evaluating empty list () gives no value'''
    if len(expr.items) == 0:
        return UndefVal()
    head = expr.items[0]
    if isinstance(head, SymbolAtom) and head.name in _eval_list_rules:
        f = _eval_list_rules[head.name]
    else:
        f = _eval_list_rules['#call']
    return f(expr, env, evl)


'''
special form shape checking
a special form with wrong shape is an unknown expression
'''


def check_form_length(expr: ListExpr, keyword: str, lengths: List[int]):
    if len(expr.items) not in lengths:
        expect = ' or '.join(['%d' % n for n in lengths])
        raise SchemeRuntimeError(expr.paren, 'unknown expression: %s should have %s expressions, now %d' % (
            keyword, expect, len(expr.items)))


def check_symbol(expr: Expression, anchor: Token, prefix: str):
    if not isinstance(expr, SymbolAtom):
        raise SchemeRuntimeError(anchor, 'unknown expression: %s should be symbol, now %s' % (prefix, type(expr).__name__))
    return expr


def check_parameters(expr: Expression, anchor: Token):
    if not isinstance(expr, ListExpr):
        raise SchemeRuntimeError(anchor, 'unknown expression: lambda parameters should be list')
    names: List[str] = []
    unq: Set[str] = set([])
    for subexpr in expr.items:
        symbol = check_symbol(subexpr, anchor, 'parameter')
        if symbol.name in unq:
            raise SchemeRuntimeError(symbol.token, 'unknown expression: parameter show up twice')
        unq.add(symbol.name)
        names.append(symbol.name)
    return names


@eval_rule_decorator
def eval_define(expr: ListExpr, env: Environment, evl: EvalRecurFuncType):
    check_form_length(expr, 'define', [3])
    name = check_symbol(expr.items[1], expr.paren, 'define name')
    initializer = evl(expr.items[2], env)
    env_define(env, name.name, initializer)
    return UndefVal()


@eval_rule_decorator
def eval_if(expr: ListExpr, env: Environment, evl: EvalRecurFuncType):
    '''return the successful branch, else branch can be omitted'''
    check_form_length(expr, 'if', [3, 4])
    pred_val = evl(expr.items[1], env)
    if is_truthy(pred_val):
        return evl(expr.items[2], env)
    elif len(expr.items) == 4:
        return evl(expr.items[3], env)
    else:
        return UndefVal()


def quote_expr(expr: Expression):
    '''turn expression into data, stripping the atom tags recursively'''
    if isinstance(expr, NumberAtom):
        return NumberVal(expr.value)
    elif isinstance(expr, StringAtom):
        return StringVal(expr.value)
    elif isinstance(expr, BooleanAtom):
        return BooleanVal(expr.value)
    elif isinstance(expr, SymbolAtom):
        return SymbolVal(expr.name)
    elif isinstance(expr, ListExpr):
        return ListVal([quote_expr(subexpr) for subexpr in expr.items])
    elif isinstance(expr, ErrorAtom):
        raise SchemeRuntimeError(expr.token, expr.message)
    else:
        raise SchemeRuntimeError(None, 'unknown expression %s' % type(expr).__name__)


@eval_rule_decorator
def eval_quote(expr: ListExpr):
    check_form_length(expr, 'quote', [2])
    return quote_expr(expr.items[1])


@eval_rule_decorator
def eval_set(expr: ListExpr, env: Environment, evl: EvalRecurFuncType):
    check_form_length(expr, 'set!', [3])
    name = check_symbol(expr.items[1], expr.paren, 'set! name')
    initializer = evl(expr.items[2], env)
    try:
        env_set(env, name.name, initializer)
    except SchemeEnvError:
        raise SchemeRuntimeError(name.token, 'unbound variable')
    return UndefVal()


@eval_rule_decorator
def eval_lambda(expr: ListExpr, env: Environment):
    '''only one body expression, env is captured as is'''
    check_form_length(expr, 'lambda', [3])
    parameters = check_parameters(expr.items[1], expr.paren)
    return ProcVal('lambda', parameters, expr.items[2], env)


'''procedure application'''


def pure_check_arity(paren: Optional[Token], name: str, pos_arity: int, has_rest: bool, arg_count: int):
    if has_rest:
        if arg_count < pos_arity:
            raise SchemeRuntimeError(paren, '%s expect at least %d arguments, only get %d' % (name, pos_arity, arg_count))
    else:
        if arg_count != pos_arity:
            raise SchemeRuntimeError(paren, '%s expect exactly %d arguments, but get %d' % (name, pos_arity, arg_count))


def pure_eval_call_prim(paren: Optional[Token], operator: PrimVal, operands: List[SchemeVal]):
    pure_check_arity(paren, operator.name, operator.pos_arity, operator.has_rest, len(operands))
    try:
        return operator.body(*operands)
    except SchemePrimError as err:
        raise SchemeRuntimeError(paren, err.message)


def pure_eval_call_proc(paren: Optional[Token], operator: ProcVal, operands: List[SchemeVal]):
    '''each call gets a fresh frame, whose enclosing is the defining environment'''
    pure_check_arity(paren, operator.name, len(operator.parameters), False, len(operands))
    new_env = env_extend(operator.env, operator.parameters, operands)
    return evaluate_recursive(operator.body, new_env)


def pure_eval_call_invalid(paren: Optional[Token], operator: SchemeVal):
    raise SchemeRuntimeError(paren, 'not callable: cannot call %s value' % type(operator).__name__)


def apply_procedure(paren: Optional[Token], operator: SchemeVal, operands: List[SchemeVal]):
    if isinstance(operator, PrimVal):
        return pure_eval_call_prim(paren, operator, operands)
    elif isinstance(operator, ProcVal):
        return pure_eval_call_proc(paren, operator, operands)
    else:
        return pure_eval_call_invalid(paren, operator)


@eval_rule_decorator
def eval_call(expr: ListExpr, env: Environment, evl: EvalRecurFuncType):
    operator = evl(expr.items[0], env)
    operands = [evl(subexpr, env) for subexpr in expr.items[1:]]
    return apply_procedure(expr.paren, operator, operands)


def install_eval_rules():
    rules = {
        SymbolAtom: eval_symbol,
        StringAtom: eval_string,
        NumberAtom: eval_number,
        BooleanAtom: eval_boolean,
        ErrorAtom: eval_error,
        ListExpr: eval_list,
    }
    update_eval_rules(rules)
    # #call is the fallback for any head which is not a special form
    list_rules = {
        'define': eval_define,
        'if': eval_if,
        'quote': eval_quote,
        'set!': eval_set,
        'lambda': eval_lambda,
        '#call': eval_call,
    }
    update_eval_list_rules(list_rules)


def _make_test_env():
    '''a tiny environment with one primitive, the full table lives in scheme_primitives'''
    def _add(x: SchemeVal, y: SchemeVal):
        if not isinstance(x, NumberVal) or not isinstance(y, NumberVal):
            raise SchemePrimError('add requires numbers')
        return NumberVal(x.value + y.value)
    return Environment({'add': PrimVal('add', 2, False, _add)})


def test_one(source: str, **kargs: str):
    print('* source: %s' % source)
    try:
        expressions = read_program(scan_source(source))
        result = evaluate_program(expressions, _make_test_env())
        result_str = stringify_value(result)
        print('* result: %s' % result_str)
        assert result_str == kargs['result']
    except SchemePanic as err:
        print('* panic: %s' % err.message)
        assert err.message == kargs['panic']
    print('----------')


def test_atoms():
    test_one('1', result='1')
    test_one('"abc"', result='abc')
    test_one('#f', result='#f')
    test_one('()', result='#<undef>')
    test_one('add', result='[primitive add]')
    test_one(
        'x',
        panic='runtime error at SYMBOL:x in line 1: unbound variable'
    )
    test_one(
        ')',
        panic='runtime error at RIGHT_PAREN in line 1: unexpected )'
    )


def test_special_forms():
    test_one('(define x 1) x', result='1')
    test_one('(define x 1)', result='#<undef>')
    test_one('(if 0 1 2)', result='1')
    test_one('(if #f 1)', result='#<undef>')
    test_one('(quote (1 (a "b") #t))', result='(1 (a b) #t)')
    test_one('(quote x)', result='x')
    test_one('(define x 1) (set! x 2) x', result='2')
    test_one('((lambda (x y) (add x y)) 1 2)', result='3')
    test_one('(lambda () 1)', result='[procedure lambda]')
    test_one(
        '(set! y 1)',
        panic='runtime error at SYMBOL:y in line 1: unbound variable'
    )
    test_one(
        '(define 1 2)',
        panic='runtime error at LEFT_PAREN in line 1: unknown expression: define name should be symbol, now NumberAtom'
    )
    test_one(
        '(if 1 2 3 4)',
        panic='runtime error at LEFT_PAREN in line 1: unknown expression: if should have 3 or 4 expressions, now 5'
    )
    test_one(
        '(lambda (x x) x)',
        panic='runtime error at SYMBOL:x in line 1: unknown expression: parameter show up twice'
    )
    test_one(
        '(lambda (x) x x)',
        panic='runtime error at LEFT_PAREN in line 1: unknown expression: lambda should have 3 expressions, now 4'
    )


def test_call():
    test_one(
        '(1 2)',
        panic='runtime error at LEFT_PAREN in line 1: not callable: cannot call NumberVal value'
    )
    test_one(
        '((lambda (x) x))',
        panic='runtime error at LEFT_PAREN in line 1: lambda expect exactly 1 arguments, but get 0'
    )
    test_one(
        '(add 1 "a")',
        panic='runtime error at LEFT_PAREN in line 1: add requires numbers'
    )
    # closure captures defining environment by reference
    test_one(
        '(define f (lambda () y)) (define y 5) (f)',
        result='5'
    )
    # each call has a fresh frame
    test_one(
        '(define k (lambda (x) (lambda () x))) (define a (k 1)) (define b (k 2)) (add (a) (b))',
        result='3'
    )


def test_unknown():
    try:
        evaluate_recursive(Expression(), _make_test_env())
        assert False
    except SchemeRuntimeError as err:
        assert str(err) == 'runtime error: unknown expression Expression'


def test():
    test_atoms()
    test_special_forms()
    test_call()
    test_unknown()


if __name__ == '__main__':
    install_stringify_expr_rules()
    install_stringify_value_rules()
    install_is_equal_rules()
    install_eval_rules()
    test()
