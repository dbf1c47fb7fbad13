from functools import reduce
from typing import Callable

from .ftypes import Maybe


def compose(*funcs):
    """compose(f, g, h)(x) == f(g(h(x)))"""
    return reduce(lambda f, g: lambda x: f(g(x)), funcs)


def pipe(*funcs):
    """pipe(f, g, h)(x) == h(g(f(x)))"""
    return reduce(lambda f, g: lambda x: g(f(x)), funcs)


def first_some(*getters: Callable[..., Maybe]) -> Callable[..., Maybe]:
    """
    Упорядоченный резолвер: первый геттер, вернувший Some, побеждает.
    first_some(f, g)(x) == f(x).or_else(lambda: g(x))
    """

    def resolve(*args) -> Maybe:
        return reduce(
            lambda acc, getter: acc.or_else(lambda: getter(*args)),
            getters,
            Maybe.nothing(),
        )

    return resolve
