"""Module lifecycle hooks.

After a module is registered, every instance resolvable from its
container gets its init hooks called exactly once; on teardown the
instances that declared destroy hooks get them called, best effort.

An instance exposes hooks either by implementing :class:`OnModuleInit` /
:class:`OnModuleDestroy` or by marking methods with :func:`post_construct`
/ :func:`pre_destroy`.
"""

import inspect
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar, runtime_checkable

from loguru import logger

from ..di.container import Container
from ..di.tokens import token_name
from ..errors import LifecycleHookError, ProviderNotFoundError

F = TypeVar("F", bound=Callable[..., Any])

INIT_HOOK = "on_module_init"
DESTROY_HOOK = "on_module_destroy"


@runtime_checkable
class OnModuleInit(Protocol):
    def on_module_init(self) -> Any: ...


@runtime_checkable
class OnModuleDestroy(Protocol):
    def on_module_destroy(self) -> Any: ...


def post_construct(method: F) -> F:
    """
    Mark a method to be called after module registration.

    The method will be called after all dependencies are injected.
    """
    method._honorer_post_construct = True
    return method


def pre_destroy(method: F) -> F:
    """
    Mark a method to be called when its module is destroyed.
    """
    method._honorer_pre_destroy = True
    return method


def _marked_methods(instance: Any, marker: str) -> List[Callable[..., Any]]:
    methods = []
    for name, member in inspect.getmembers(type(instance), inspect.isfunction):
        if getattr(member, marker, False):
            methods.append(getattr(instance, name))
    return methods


def init_hooks(instance: Any) -> List[Callable[..., Any]]:
    """Bound init hooks of an instance, ``on_module_init`` first."""
    hooks = []
    if callable(getattr(instance, INIT_HOOK, None)):
        hooks.append(getattr(instance, INIT_HOOK))
    hooks.extend(m for m in _marked_methods(instance, "_honorer_post_construct") if m not in hooks)
    return hooks


def destroy_hooks(instance: Any) -> List[Callable[..., Any]]:
    """Bound destroy hooks of an instance, ``on_module_destroy`` first."""
    hooks = []
    if callable(getattr(instance, DESTROY_HOOK, None)):
        hooks.append(getattr(instance, DESTROY_HOOK))
    hooks.extend(m for m in _marked_methods(instance, "_honorer_pre_destroy") if m not in hooks)
    return hooks


def _describe(instance: Any, token: Any = None) -> str:
    if token is not None:
        return token_name(token)
    return type(instance).__name__


async def _call(hook: Callable[..., Any]) -> None:
    result = hook()
    if inspect.isawaitable(result):
        await result


class LifecycleManager:
    """Runs init hooks after registration and destroy hooks on teardown.

    Tracks which instances were initialised so a singleton shared between
    modules (an exported provider) is initialised and destroyed once.
    """

    def __init__(self):
        self._initialized: Dict[int, Any] = {}

    def is_initialized(self, instance: Any) -> bool:
        return id(instance) in self._initialized

    async def run_init_hooks(
        self,
        module_name: str,
        container: Container,
        initialized: Optional[List[Any]] = None,
    ) -> List[Any]:
        """Resolve every token of a module container and run its init hooks.

        Tokens without a provider are skipped; any other resolution failure
        propagates.

        Args:
            module_name: Name of the module, for logs and errors
            container: The module-scoped container
            initialized: List to append newly tracked instances to, so a
                caller still sees them when a hook fails midway

        Returns:
            Instances first initialised by this call, in container order

        Raises:
            LifecycleHookError: On the first failing init hook; remaining
                hooks of the module are not run
        """
        initialized = [] if initialized is None else initialized

        for token in container.tokens():
            try:
                instance = container.resolve(token)
            except ProviderNotFoundError as e:
                logger.warning(f"Skipping init for {token_name(token)} in {module_name}: not resolvable ({e})")
                continue

            if instance is None or inspect.isclass(instance) or self.is_initialized(instance):
                continue
            self._initialized[id(instance)] = instance
            initialized.append(instance)

            for hook in init_hooks(instance):
                try:
                    await _call(hook)
                except Exception as e:
                    raise LifecycleHookError(
                        hook.__name__, _describe(instance, token), module_name, e
                    ) from e
                logger.debug(f"{hook.__name__} executed for {_describe(instance, token)} in {module_name}")

        return initialized

    async def run_destroy_hooks(self, module_name: str, instances: List[Any]) -> List[LifecycleHookError]:
        """Run destroy hooks on instances; failures are logged and collected.

        Returns:
            Errors raised by failing hooks, in call order
        """
        failures: List[LifecycleHookError] = []

        for instance in instances:
            for hook in destroy_hooks(instance):
                try:
                    await _call(hook)
                    logger.debug(f"{hook.__name__} executed for {_describe(instance)} in {module_name}")
                except Exception as e:
                    # LifecycleHookError logs itself on construction.
                    failures.append(LifecycleHookError(hook.__name__, _describe(instance), module_name, e))
            self._initialized.pop(id(instance), None)

        return failures

    def forget(self, instances: List[Any]) -> None:
        """Stop tracking instances without running their hooks."""
        for instance in instances:
            self._initialized.pop(id(instance), None)

    def clear(self) -> None:
        self._initialized.clear()
