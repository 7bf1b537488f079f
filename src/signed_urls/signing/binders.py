"""
Attribute binders for signed URLs

A binder contributes hidden key/value pairs to the digest input. The pairs
never appear in the visible URL, so a captured URL only verifies when the same
binder produces the same pairs at verification time. Binders run in
registration order on both sides.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .providers import ContextProvider
from .types import (
    OptionFlag,
    QueryPairs,
    SigningError,
    SigningErrorCodes,
    TOKEN_PARAM,
)


@dataclass(frozen=True)
class BindingContext:
    """
    Inputs available to a binder

    Attributes:
        path: URL path being signed or verified
        params: Visible parameters, token excluded
        options: Option flags recovered from the ``o`` parameter
        request: Request context provider, if any
    """
    path: str
    params: Tuple[Tuple[str, str], ...]
    options: Tuple[str, ...]
    request: Optional[ContextProvider] = None

    def has_option(self, flag: str) -> bool:
        return flag in self.options


class AttributeBinder(ABC):
    """Base class for binders contributing hidden pairs to the digest input"""

    name: str = "binder"

    @abstractmethod
    def bind(self, context: BindingContext) -> Mapping[str, str]:
        """
        Produce the pairs to fold into the digest input.

        Must be deterministic for a given context.
        """
        ...


class OptionBinder(AttributeBinder):
    """
    Binder active only when its option flag is present in ``o``.

    Args:
        flag: Option flag that enables the binder
        param_name: Hidden parameter name used in the digest input
        getter: Reads the value from the request context
    """

    def __init__(
        self,
        flag: str,
        param_name: str,
        getter: Callable[[ContextProvider], Optional[str]]
    ):
        self.flag = flag
        self.name = flag
        self.param_name = param_name
        self._getter = getter

    def bind(self, context: BindingContext) -> Mapping[str, str]:
        if not context.has_option(self.flag):
            return {}

        value = None
        if context.request is not None:
            value = self._getter(context.request)

        if value is None:
            raise SigningError(
                f"Option '{self.flag}' requires a request context value that is not available",
                SigningErrorCodes.MISSING_CONTEXT,
                {"option": self.flag, "param": self.param_name}
            )

        return {self.param_name: value}


class ClientIPBinder(OptionBinder):
    """Binds the client's network address when ``o`` contains ``ip``"""

    def __init__(self):
        super().__init__(
            OptionFlag.CLIENT_IP.value,
            "ip",
            lambda request: request.current_client_address()
        )


class UserAgentBinder(OptionBinder):
    """Binds the raw user-agent string when ``o`` contains ``ua``"""

    def __init__(self):
        super().__init__(
            OptionFlag.USER_AGENT.value,
            "user_agent",
            lambda request: request.current_user_agent()
        )


class CallableBinder(AttributeBinder):
    """Wraps a plain function as a binder"""

    def __init__(self, func: Callable[[BindingContext], Mapping[str, str]], name: Optional[str] = None):
        self._func = func
        self.name = name or getattr(func, '__name__', 'callable')

    def bind(self, context: BindingContext) -> Mapping[str, str]:
        return self._func(context)


class BinderRegistry:
    """Ordered collection of attribute binders"""

    def __init__(self, binders: Optional[Sequence[AttributeBinder]] = None):
        self._binders: List[AttributeBinder] = list(binders or [])

    def register(self, binder: AttributeBinder) -> 'BinderRegistry':
        """Append a binder; returns self for chaining."""
        if not isinstance(binder, AttributeBinder):
            raise TypeError("Binder must be an AttributeBinder instance")
        self._binders.append(binder)
        return self

    def unregister(self, name: str) -> bool:
        """Remove every binder with ``name``. Returns True if any was removed."""
        before = len(self._binders)
        self._binders = [b for b in self._binders if b.name != name]
        return len(self._binders) != before

    def copy(self) -> 'BinderRegistry':
        return BinderRegistry(self._binders)

    def __iter__(self) -> Iterator[AttributeBinder]:
        return iter(list(self._binders))

    def __len__(self) -> int:
        return len(self._binders)

    def collect(self, context: BindingContext) -> QueryPairs:
        """
        Run every binder in order and gather their pairs.

        Args:
            context: Binding context

        Returns:
            list: Hidden (name, value) pairs

        Raises:
            SigningError: If a binder fails or returns an invalid pair
        """
        pairs: QueryPairs = []

        for binder in self._binders:
            try:
                produced = binder.bind(context)
            except SigningError:
                raise
            except Exception as e:
                raise SigningError(
                    f"Binder '{binder.name}' failed: {e}",
                    SigningErrorCodes.BINDER_FAILED,
                    {"binder": binder.name, "original_error": str(e)}
                )

            for key, value in (produced or {}).items():
                if not isinstance(key, str) or not isinstance(value, str):
                    raise SigningError(
                        f"Binder '{binder.name}' produced a non-string pair",
                        SigningErrorCodes.BINDER_FAILED,
                        {"binder": binder.name, "key": repr(key)}
                    )
                if key == TOKEN_PARAM:
                    raise SigningError(
                        f"Binder '{binder.name}' cannot bind the reserved '{TOKEN_PARAM}' parameter",
                        SigningErrorCodes.BINDER_FAILED,
                        {"binder": binder.name}
                    )
                pairs.append((key, value))

        return pairs


def default_binders() -> BinderRegistry:
    """Registry with the built-in client-address and user-agent binders."""
    return BinderRegistry([ClientIPBinder(), UserAgentBinder()])
