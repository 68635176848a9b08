'''
shared helpers for the toy scheme interpreter
formatting of literals, dispatching by type, global config, panic and buffered print

every later stage (scanner, reader, evaluator, primitives) imports from here
so this module must not import any other scheme module
'''

import sys
from typing import Any, Dict, List, Type


'''basic formatting'''


def format_float(x: float):
    if float(x).is_integer():
        return '%d' % x
    else:
        return '%.3f' % x


def format_bool(x: bool):
    return '#t' if x else '#f'


'''dynamic dispatching by type'''


def find_type(cur_type: Type[object], type_dict: Dict[Type, Any]):
    '''searching cur_type in the type hierarchy, until finding a base class in type_dict'''
    while cur_type != object:
        if cur_type in type_dict:
            return cur_type
        else:
            cur_type = cur_type.__base__
    return cur_type


'''
global config

with suppress_panic being True
error will not exit process directly
instead error is turned into panic, handled by the caller of interpret

with suppress_print being True
print will not go to console directly
instead it is buffered, and later explicitly dumped as string

both make test easier
'''

scheme_config = {
    'suppress_panic': True,
    'suppress_print': True
}


class SchemePanic(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def scheme_panic(message: str):
    if scheme_config['suppress_panic']:
        raise SchemePanic(message)
    else:
        print(message, file=sys.stderr)
        sys.exit(1)


_scheme_buf: List[str] = []


def scheme_print(message: str):
    if scheme_config['suppress_print']:
        _scheme_buf.append(message)
    else:
        print(message, end='')


def scheme_flush():
    res = ''.join(_scheme_buf)
    _scheme_buf.clear()
    return res


def test_format():
    assert format_float(4.0) == '4'
    assert format_float(-3.0) == '-3'
    assert format_float(0.5) == '0.500'
    assert format_float(3) == '3'
    assert format_float(float('inf')) == 'inf'
    assert format_bool(True) == '#t'
    assert format_bool(False) == '#f'


def test_find_type():
    class A:
        pass

    class B(A):
        pass

    class C:
        pass

    assert find_type(B, {A: 1}) == A
    assert find_type(A, {A: 1, B: 2}) == A
    assert find_type(C, {A: 1}) == object


def test_panic_and_print():
    try:
        scheme_panic('boom')
        assert False
    except SchemePanic as err:
        assert err.message == 'boom'
    scheme_print('a')
    scheme_print('\n')
    assert scheme_flush() == 'a\n'
    assert scheme_flush() == ''


def test():
    test_format()
    test_find_type()
    test_panic_and_print()


if __name__ == '__main__':
    test()
