'''
scheme value definitions

value and expression are similar, but we still differentiate them, giving them different base class, because
undef, procedure and primitive only appear in value, not in expression
expression needs to store token for error reporting, value doesn't

a list value is a sequence backed by python list, we do not model pairs
this is enough for quote, list, car, cdr, cons
because of the differentiation, we have to implement quote to convert expression to the "same" value

schemeval will be specified as various classes, and this helps static type checking
if we represent it as single class with different tag (like token), we won't have type checking with python's typing
'''

from typing import Any, Callable, Dict, List, Type, Union, cast

from scheme_base import find_type, format_bool, format_float
from scheme_env import Environment, SchemeVal
from scheme_reader import Expression


class SymbolVal(SchemeVal):
    def __init__(self, value: str):
        self.value = value


class StringVal(SchemeVal):
    def __init__(self, value: str):
        self.value = value


class NumberVal(SchemeVal):
    def __init__(self, value: float):
        self.value = value


class BooleanVal(SchemeVal):
    def __init__(self, value: bool):
        self.value = value


class ListVal(SchemeVal):
    def __init__(self, value: List[SchemeVal]):
        self.value = value


class UndefVal(SchemeVal):
    '''the "no value" result of define, set!, () and missing else branch'''
    pass


class PrimVal(SchemeVal):
    def __init__(self, name: str, pos_arity: int, has_rest: bool, body: Callable[..., SchemeVal]):
        self.name = name
        self.pos_arity = pos_arity
        self.has_rest = has_rest
        self.body = body


class ProcVal(SchemeVal):
    '''
    user defined procedure, i.e. closure
    env is the defining environment itself, not a copy
    body is a single expression
    '''

    def __init__(self, name: str, parameters: List[str], body: Expression, env: Environment):
        self.name = name
        self.parameters = parameters
        self.body = body
        self.env = env


'''value stringifier'''

StringifyValueFuncType = Callable[[SchemeVal], str]

_stringify_value_rules: Dict[Type, StringifyValueFuncType] = {}


def update_stringify_value_rules(rules: Dict[Type, StringifyValueFuncType]):
    _stringify_value_rules.update(rules)


def stringify_value(sv: SchemeVal):
    t = find_type(type(sv), _stringify_value_rules)
    f = _stringify_value_rules[t]
    return f(sv)


def stringify_value_symbol(sv: SymbolVal):
    return sv.value


def stringify_value_string(sv: StringVal):
    return sv.value


def stringify_value_number(sv: NumberVal):
    return format_float(sv.value)


def stringify_value_boolean(sv: BooleanVal):
    return format_bool(sv.value)


def stringify_value_list(sv: ListVal):
    return '(%s)' % (' '.join([stringify_value(subval) for subval in sv.value]))


def stringify_value_undef(sv: UndefVal):
    return '#<undef>'


def stringify_value_procedure(sv: ProcVal):
    return '[procedure %s]' % sv.name


def stringify_value_primitive(sv: PrimVal):
    return '[primitive %s]' % sv.name


def install_stringify_value_rules():
    rules = {
        SymbolVal: stringify_value_symbol,
        StringVal: stringify_value_string,
        NumberVal: stringify_value_number,
        BooleanVal: stringify_value_boolean,
        ListVal: stringify_value_list,
        UndefVal: stringify_value_undef,
        ProcVal: stringify_value_procedure,
        PrimVal: stringify_value_primitive,
    }
    update_stringify_value_rules(rules)


'''value equality checker'''

EqualityFuncType = Callable[[Any, Any], bool]

_is_equal_rules: Dict[Type, EqualityFuncType] = {}


def update_is_equal_rules(rules: Dict[Type, EqualityFuncType]):
    _is_equal_rules.update(rules)


def is_equal(x: SchemeVal, y: SchemeVal):
    if type(x) == type(y):
        t = find_type(type(x), _is_equal_rules)
        f = _is_equal_rules[t]
        return f(x, y)
    else:
        return False


def is_equal_literal(x: Union[SymbolVal, StringVal, NumberVal, BooleanVal], y: Union[SymbolVal, StringVal, NumberVal, BooleanVal]):
    return x.value == y.value


def is_equal_list(x: ListVal, y: ListVal):
    return len(x.value) == len(y.value) and all([is_equal(a, b) for (a, b) in zip(x.value, y.value)])


def is_equal_true(x: UndefVal, y: UndefVal):
    return True


def is_equal_object(x: Union[PrimVal, ProcVal], y: Union[PrimVal, ProcVal]):
    return x is y


def install_is_equal_rules():
    rules = {
        SymbolVal: is_equal_literal,
        StringVal: is_equal_literal,
        NumberVal: is_equal_literal,
        BooleanVal: is_equal_literal,
        ListVal: is_equal_list,
        UndefVal: is_equal_true,
        ProcVal: is_equal_object,
        PrimVal: is_equal_object,
    }
    update_is_equal_rules(rules)


def is_truthy(sv: SchemeVal):
    '''
    in scheme, the only thing not truthy is #f
    except that everything is truthy, including 0, "", empty list, #<undef>
    '''
    return type(sv) != BooleanVal or cast(BooleanVal, sv).value == True


def test_stringify():
    sv = ListVal([NumberVal(1), StringVal('a'), SymbolVal('b'), ListVal([BooleanVal(False)]), ListVal([])])
    assert stringify_value(sv) == '(1 a b (#f) ())'
    assert stringify_value(UndefVal()) == '#<undef>'
    assert stringify_value(NumberVal(2.5)) == '2.500'


def test_equal():
    assert is_equal(NumberVal(1), NumberVal(1))
    assert not is_equal(NumberVal(1), StringVal('1'))
    assert is_equal(ListVal([NumberVal(1), ListVal([])]), ListVal([NumberVal(1), ListVal([])]))
    assert not is_equal(ListVal([NumberVal(1)]), ListVal([NumberVal(1), NumberVal(2)]))


def test_truthy():
    assert is_truthy(NumberVal(0))
    assert is_truthy(ListVal([]))
    assert is_truthy(StringVal(''))
    assert is_truthy(UndefVal())
    assert is_truthy(BooleanVal(True))
    assert not is_truthy(BooleanVal(False))


def test():
    test_stringify()
    test_equal()
    test_truthy()


if __name__ == '__main__':
    install_stringify_value_rules()
    install_is_equal_rules()
    test()
