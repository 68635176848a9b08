'''
environment: chained symbol tables
see chap 4.1.3 and https://craftinginterpreters.com/statements-and-state.html

each frame holds its own bindings and a link to the enclosing frame
the chain ends at the global frame, whose enclosing is None

frames are shared by reference, never copied
a closure keeps its defining frame alive, and later define or set! on that frame is visible to the closure
this is how a procedure defined at top level can call itself by name
'''

from typing import Dict, List, Optional


class SchemeVal:
    '''
    schemeVal defaults to be truthy, including 0, "", empty list
    the only thing not truthy is #f, see is_truthy
    '''
    pass


class SchemeEnvError(Exception):
    def __init__(self, env: "Environment", name: str):
        self.env = env
        self.name = name


class Environment:
    def __init__(self, bindings: Dict[str, SchemeVal], enclosing: Optional["Environment"] = None):
        self.bindings = bindings
        self.enclosing = enclosing


'''
we use functional programming style, i.e. moving all methods out of class
in this way, new operations can be easily added
'''


def _env_find(env: Environment, name: str):
    cur: Optional[Environment] = env
    while cur is not None:
        if name in cur.bindings:
            return cur
        cur = cur.enclosing
    return None


def env_define(env: Environment, name: str, sv: SchemeVal):
    '''always write the local frame, shadowing outer bindings'''
    env.bindings[name] = sv


def env_set(env: Environment, name: str, sv: SchemeVal):
    '''write the nearest frame that already has name'''
    found = _env_find(env, name)
    if found is None:
        raise SchemeEnvError(env, name)
    found.bindings[name] = sv


def env_lookup(env: Environment, name: str):
    found = _env_find(env, name)
    if found is None:
        raise SchemeEnvError(env, name)
    return found.bindings[name]


def env_extend(env: Environment, parameter: List[str], arguments: List[SchemeVal]):
    return Environment(dict(zip(parameter, arguments)), env)


def test_lookup():
    a, b, c = SchemeVal(), SchemeVal(), SchemeVal()
    glbenv = Environment({'x': a})
    child = env_extend(glbenv, ['y'], [b])
    assert env_lookup(child, 'x') is a
    assert env_lookup(child, 'y') is b
    try:
        env_lookup(glbenv, 'y')
        assert False
    except SchemeEnvError as err:
        assert err.name == 'y'
    # define shadows, outer is untouched
    env_define(child, 'x', c)
    assert env_lookup(child, 'x') is c
    assert env_lookup(glbenv, 'x') is a


def test_set():
    a, b = SchemeVal(), SchemeVal()
    glbenv = Environment({'x': a})
    child = env_extend(glbenv, [], [])
    # set writes the ancestor frame, no new local binding
    env_set(child, 'x', b)
    assert 'x' not in child.bindings
    assert env_lookup(glbenv, 'x') is b
    try:
        env_set(child, 'z', a)
        assert False
    except SchemeEnvError as err:
        assert err.name == 'z'
    assert 'z' not in child.bindings and 'z' not in glbenv.bindings


def test_sharing():
    a = SchemeVal()
    glbenv = Environment({})
    child = env_extend(glbenv, [], [])
    # later definition in the enclosing frame is visible through the chain
    env_define(glbenv, 'late', a)
    assert env_lookup(child, 'late') is a


def test():
    test_lookup()
    test_set()
    test_sharing()


if __name__ == '__main__':
    test()
