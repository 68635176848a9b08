'''
primitive definitions, installed into the global environment

every primitive is a python function over scheme values
its arity is read from the python signature, so the evaluator can check it before calling
  def f(x, y) expects exactly 2 arguments
  def f(x, *rest) expects at least 1 argument
a primitive only looking at its first arguments takes the others as *_ and ignores them

type errors are raised as SchemePrimError, the evaluator attaches the call position
'''

import inspect
from typing import Callable, Dict, List, Sequence

from scheme_base import SchemePanic, scheme_flush, scheme_print
from scheme_env import Environment, SchemeVal, env_define
from scheme_evaluator import SchemePrimError, apply_procedure, evaluate_program, install_eval_rules
from scheme_reader import install_stringify_expr_rules, read_program
from scheme_scanner import scan_source
from scheme_values import BooleanVal, ListVal, NumberVal, PrimVal, ProcVal, StringVal, UndefVal, \
    install_is_equal_rules, install_stringify_value_rules, is_equal, stringify_value


_primitives: Dict[str, Callable] = {}


def update_primitives(prims: Dict[str, Callable]):
    _primitives.update(prims)


def make_global_env():
    glbenv = Environment({})
    register_primitives(glbenv, _primitives)
    return glbenv


def get_py_func_arity(py_func: Callable):
    rf = inspect.getfullargspec(py_func)
    return len(rf.args), rf.varargs is not None


def register_primitives(env: Environment, primitives: Dict[str, Callable]):
    '''add a batch of primitives to environment'''
    for name in primitives:
        py_func = primitives[name]
        pos_arity, has_rest = get_py_func_arity(py_func)
        primitive = PrimVal(name, pos_arity, has_rest, py_func)
        env_define(env, name, primitive)


'''arithmetic'''


def check_numbers(name: str, args: Sequence[SchemeVal]) -> List[float]:
    res: List[float] = []
    for sv in args:
        if not isinstance(sv, NumberVal):
            raise SchemePrimError('%s requires numbers, now %s' % (name, type(sv).__name__))
        res.append(sv.value)
    return res


def make_prim_fold_num(name: str, py_func: Callable[[float, float], float], seed: float):
    '''left fold starting from seed'''
    def _prim_fold_num(*args: SchemeVal) -> SchemeVal:
        res = seed
        for x in check_numbers(name, args):
            res = py_func(res, x)
        return NumberVal(res)
    return _prim_fold_num


def make_prim_fold_num_first(name: str, py_func: Callable[[float, float], float]):
    '''left fold starting from the first argument, (- a b c) is a-b-c'''
    def _prim_fold_num_first(first: SchemeVal, *args: SchemeVal) -> SchemeVal:
        values = check_numbers(name, [first, *args])
        res = values[0]
        for x in values[1:]:
            res = py_func(res, x)
        return NumberVal(res)
    return _prim_fold_num_first


def _divide(a: float, b: float):
    if b == 0:
        raise SchemePrimError('division by zero')
    return a / b


prim_op_add = make_prim_fold_num('+', lambda a, b: a+b, 0)
prim_op_mul = make_prim_fold_num('*', lambda a, b: a*b, 1)
prim_op_sub = make_prim_fold_num_first('-', lambda a, b: a-b)
prim_op_div = make_prim_fold_num_first('/', _divide)


def make_prim_num2_bool(name: str, py_func: Callable[[float, float], bool]):
    '''compare the first two arguments only'''
    def _prim_num2_bool(x: SchemeVal, y: SchemeVal, *_: SchemeVal) -> SchemeVal:
        a, b = check_numbers(name, [x, y])
        return BooleanVal(py_func(a, b))
    return _prim_num2_bool


prim_op_eq = make_prim_num2_bool('=', lambda a, b: a == b)
prim_op_lt = make_prim_num2_bool('<', lambda a, b: a < b)
prim_op_gt = make_prim_num2_bool('>', lambda a, b: a > b)


def prim_equal(x: SchemeVal, y: SchemeVal):
    return BooleanVal(is_equal(x, y))


'''sequence'''


def make_prim_list_any(name: str, py_func: Callable[[ListVal], SchemeVal]):
    def _prim_list_any(x: SchemeVal, *_: SchemeVal) -> SchemeVal:
        if isinstance(x, ListVal):
            return py_func(x)
        else:
            raise SchemePrimError('%s requires a list, now %s' % (name, type(x).__name__))
    return _prim_list_any


def _car(x: ListVal):
    if len(x.value) == 0:
        raise SchemePrimError('car of empty list')
    return x.value[0]


def _cdr(x: ListVal):
    if len(x.value) == 0:
        raise SchemePrimError('cdr of empty list')
    return ListVal(x.value[1:])


prim_car = make_prim_list_any('car', _car)
prim_cdr = make_prim_list_any('cdr', _cdr)
prim_len = make_prim_list_any('len', lambda x: NumberVal(len(x.value)))
prim_null = make_prim_list_any('null?', lambda x: BooleanVal(len(x.value) == 0))


def prim_cons(x: SchemeVal, y: SchemeVal, *_: SchemeVal):
    if not isinstance(y, ListVal):
        raise SchemePrimError('cons requires a list as 2nd argument, now %s' % type(y).__name__)
    return ListVal([x, *y.value])


def prim_list(*args: SchemeVal):
    return ListVal(list(args))


def prim_apply(operator: SchemeVal, *args: SchemeVal):
    if not isinstance(operator, (PrimVal, ProcVal)):
        raise SchemePrimError('apply requires a procedure, now %s' % type(operator).__name__)
    return apply_procedure(None, operator, list(args))


'''string and sequencing'''


def prim_string_append(*args: SchemeVal):
    return StringVal(''.join([stringify_value(sv) for sv in args]))


def prim_begin(*args: SchemeVal):
    '''arguments are already evaluated left to right, so only the last is left to return'''
    if len(args) == 0:
        return UndefVal()
    return args[-1]


def prim_display(sv: SchemeVal):
    scheme_print(stringify_value(sv))
    return UndefVal()


def prim_newline():
    scheme_print('\n')
    return UndefVal()


def install_primitives():
    prims = {
        '+': prim_op_add,
        '-': prim_op_sub,
        '*': prim_op_mul,
        '/': prim_op_div,
        '=': prim_op_eq,
        '<': prim_op_lt,
        '>': prim_op_gt,
        'equal?': prim_equal,
        'null?': prim_null,
        'car': prim_car,
        'cdr': prim_cdr,
        'cons': prim_cons,
        'list': prim_list,
        'apply': prim_apply,
        'len': prim_len,
        'string-append': prim_string_append,
        'begin': prim_begin,
        'display': prim_display,
        'newline': prim_newline,
    }
    update_primitives(prims)


def test_one(source: str, **kargs: str):
    print('* source: %s' % source)
    try:
        result = evaluate_program(read_program(scan_source(source)), make_global_env())
        result_str = stringify_value(result)
        output_str = scheme_flush()
        if len(output_str):
            print('* output: %s' % output_str)
        if 'output' in kargs:
            assert output_str == kargs['output']
        print('* result: %s' % result_str)
        assert result_str == kargs['result']
    except SchemePanic as err:
        print('* panic: %s' % err.message)
        assert err.message == kargs['panic']
    print('----------')


def test_arithmetic():
    test_one('(+)', result='0')
    test_one('(+ 2 2 3 5)', result='12')
    test_one('(- 8 2 3 2)', result='1')
    test_one('(- 5)', result='5')
    test_one('(*)', result='1')
    test_one('(* 8 2 2)', result='32')
    test_one('(/ 8 2 2)', result='2')
    test_one('(/ 1 4)', result='0.250')
    test_one(
        '(/ 1 0)',
        panic='runtime error at LEFT_PAREN in line 1: division by zero'
    )
    test_one(
        '(-)',
        panic='runtime error at LEFT_PAREN in line 1: - expect at least 1 arguments, only get 0'
    )
    test_one(
        '(+ 1 "a")',
        panic='runtime error at LEFT_PAREN in line 1: + requires numbers, now StringVal'
    )


def test_compare():
    test_one('(< 1 2)', result='#t')
    test_one('(> 1 2)', result='#f')
    test_one('(= 2 2)', result='#t')
    # only the first two are compared
    test_one('(< 1 2 0)', result='#t')
    test_one('(equal? (list 1 "a") (quote (1 "a")))', result='#t')
    test_one(
        '(< 1)',
        panic='runtime error at LEFT_PAREN in line 1: < expect at least 2 arguments, only get 1'
    )
    # comparison is numeric only, equal? compares anything
    test_one(
        '(= "a" "a")',
        panic='runtime error at LEFT_PAREN in line 1: = requires numbers, now StringVal'
    )
    test_one('(equal? "a" "a")', result='#t')


def test_sequence():
    test_one('(list 1 2 3)', result='(1 2 3)')
    test_one('(list)', result='()')
    test_one('(car (list 1 2 3))', result='1')
    test_one('(cdr (list 1 2 3))', result='(2 3)')
    test_one('(cons 1 (list 2 3))', result='(1 2 3)')
    test_one('(cons (list 1) (list))', result='((1))')
    test_one('(len (list 1 2 3))', result='3')
    test_one('(null? (list))', result='#t')
    test_one('(null? (quote (1)))', result='#f')
    test_one(
        '(car (list))',
        panic='runtime error at LEFT_PAREN in line 1: car of empty list'
    )
    test_one(
        '(cons 1 2)',
        panic='runtime error at LEFT_PAREN in line 1: cons requires a list as 2nd argument, now NumberVal'
    )
    test_one(
        '(len 1)',
        panic='runtime error at LEFT_PAREN in line 1: len requires a list, now NumberVal'
    )


def test_apply():
    test_one('(apply + 1 2 3)', result='6')
    test_one('(apply (lambda (x y) (- x y)) 5 2)', result='3')
    test_one(
        '(apply 1 2)',
        panic='runtime error at LEFT_PAREN in line 1: apply requires a procedure, now NumberVal'
    )
    test_one(
        '(apply (lambda (x) x))',
        panic='runtime error: lambda expect exactly 1 arguments, but get 0'
    )


def test_string_and_begin():
    test_one('(string-append "a" 1 "b" (list 2 3))', result='a1b(2 3)')
    test_one('(string-append)', result='')
    test_one('(begin)', result='#<undef>')
    test_one('(begin 1 2 3)', result='3')
    test_one(
        '(begin (display "x") (newline) (display (list 1 2)))',
        output='x\n(1 2)',
        result='#<undef>'
    )


def test():
    test_arithmetic()
    test_compare()
    test_sequence()
    test_apply()
    test_string_and_begin()


if __name__ == '__main__':
    install_stringify_expr_rules()
    install_stringify_value_rules()
    install_is_equal_rules()
    install_eval_rules()
    install_primitives()
    test()
