"""Provider tokens.

Any hashable object can key a provider: a class, a string, or a
:class:`Token`. Tokens compare by identity, so two ``Token("db")``
instances are distinct keys, the same way two classes named ``Db`` are.
"""

from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Token(Generic[T]):
    """Symbol-like provider token with identity semantics."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"Token({self.name!r})"


def token_name(token: Any) -> str:
    """Human-readable name for a token, used in errors and logs."""
    if isinstance(token, Token):
        return repr(token)
    if isinstance(token, str):
        return repr(token)
    name = getattr(token, "__name__", None)
    if name:
        return name
    return repr(token)
