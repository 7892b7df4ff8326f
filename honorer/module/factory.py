"""Module registration.

Turns a declared module graph into live containers, registered
controllers and mounted middleware, exactly once per module class.
"""

import importlib
import inspect
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from loguru import logger

from ..di.container import Container
from ..di.providers import FactoryProvider, ValueProvider, module_provider
from ..di.tokens import token_name
from ..errors import MissingModuleDescriptorError, ModuleRegistrationError
from .descriptor import ForwardRef, ModuleDescriptor, get_module_descriptor
from .lifecycle import LifecycleManager

if TYPE_CHECKING:
    from ..config.settings import HonorerSettings
    from ..routing.composer import RouteComposer, RouteRegistration
    from ..routing.router import Router

MIDDLEWARE_SCOPES = ("global", "module")


@dataclass
class ModuleRegistrationConfig:
    """Options of a :class:`ModuleRegistrationFactory`."""

    auto_init: bool = True
    strict_injection: bool = False
    middleware_scope: str = "global"

    def __post_init__(self):
        if self.middleware_scope not in MIDDLEWARE_SCOPES:
            raise ValueError(
                f"middleware_scope must be one of {MIDDLEWARE_SCOPES}, got {self.middleware_scope!r}"
            )

    @classmethod
    def from_settings(cls, settings: "HonorerSettings") -> "ModuleRegistrationConfig":
        return cls(
            auto_init=settings.auto_init,
            strict_injection=settings.strict_injection,
            middleware_scope=settings.middleware_scope,
        )


@dataclass
class ModuleRecord:
    """Runtime registration state of one module class."""

    module_class: type
    container: Optional[Container] = None
    registered: bool = False
    imports: List[type] = field(default_factory=list)
    instances: List[Any] = field(default_factory=list)
    routes: List["RouteRegistration"] = field(default_factory=list)
    mounts: List[Any] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.module_class.__name__


def import_string(path: str) -> Any:
    """Import ``"package.module:Name"`` (or ``"package.module.Name"``)."""
    if ":" in path:
        module_path, _, attribute = path.partition(":")
    else:
        module_path, _, attribute = path.rpartition(".")
    if not module_path or not attribute:
        raise ImportError(f"Invalid import path: {path!r}")

    target = importlib.import_module(module_path)
    for part in attribute.split("."):
        target = getattr(target, part)
    return target


class ModuleRegistrationFactory:
    """Registers modules with dependency injection and route composition.

    Each module gets its own child of the root container. Providers are
    registered on the root and aliased into the module container, so a
    provider is a single process-wide instance however many modules
    import it. Registration is idempotent and re-entrant: a module is
    marked as registered before its imports are walked, which breaks
    import cycles.
    """

    def __init__(
        self,
        router: "Router",
        root: Container,
        config: Optional[ModuleRegistrationConfig] = None,
        composer: Optional["RouteComposer"] = None,
        lifecycle: Optional[LifecycleManager] = None,
    ):
        from ..routing.composer import RouteComposer

        self.router = router
        self.root = root
        self.config = config or ModuleRegistrationConfig()
        self.composer = composer or RouteComposer(router)
        self.lifecycle = lifecycle or LifecycleManager()

        self._records: Dict[type, ModuleRecord] = {}
        self._order: List[type] = []
        self._resolved_refs: Dict[int, Any] = {}

    async def register_module(self, module_class: type) -> None:
        """Register a module, its imports first.

        Raises:
            MissingModuleDescriptorError: If the class was never declared as a module
            ModuleRegistrationError: If any registration step fails; the
                module is left unregistered so it can be retried
        """
        if self.is_module_registered(module_class):
            logger.debug(f"Module {getattr(module_class, '__name__', module_class)} already registered, skipping")
            return

        descriptor = get_module_descriptor(module_class)
        if descriptor is None:
            raise MissingModuleDescriptorError(module_class)

        record = ModuleRecord(module_class=module_class, registered=True)
        self._records[module_class] = record

        try:
            await self._register(record, descriptor)
        except Exception as e:
            self._rollback(record)
            raise ModuleRegistrationError(record.name, e) from e

        self._order.append(module_class)
        logger.debug(
            f"Registered module {record.name} "
            f"(providers={len(descriptor.providers)}, routes={len(record.routes)})"
        )

    async def register_modules(self, modules: Sequence[type]) -> None:
        """Register modules in order; later modules may rely on earlier exports."""
        for module_class in modules:
            await self.register_module(module_class)

    async def _register(self, record: ModuleRecord, descriptor: ModuleDescriptor) -> None:
        container = Container(self.root, strict=self.config.strict_injection)
        record.container = container

        for reference in descriptor.imports:
            imported = await self._resolve_import(reference)
            if imported is None:
                logger.warning(f"Skipping unresolved import {reference!r} in {record.name}")
                continue
            record.imports.append(imported)
            await self.register_module(imported)

        self._alias_exports(record, container)
        await self._register_providers(record, descriptor, container)
        self._register_controllers(record, descriptor, container)

        if self.config.middleware_scope == "global":
            record.mounts.extend(descriptor.middleware)

        if self.config.auto_init:
            await self.lifecycle.run_init_hooks(record.name, container, record.instances)

        self._publish(record)

    def _publish(self, record: ModuleRecord) -> None:
        # Only reached once init hooks succeeded.
        for middleware in record.mounts:
            self.router.use("*", middleware)
        self.composer.emit(record.routes)

    async def _resolve_import(self, reference: Any) -> Optional[type]:
        key = id(reference)
        if key in self._resolved_refs:
            return self._resolved_refs[key][1]

        target = reference.target if isinstance(reference, ForwardRef) else reference
        one_shot = inspect.isawaitable(target)
        if isinstance(target, str):
            try:
                target = import_string(target)
            except (ImportError, AttributeError) as e:
                logger.warning(f"Cannot import module {target!r}: {e}")
                return None
        elif not inspect.isclass(target) and callable(target):
            target = target()

        if inspect.isawaitable(target):
            target = await target

        resolved = target if inspect.isclass(target) else None
        # Failures are retried on the next attempt unless the reference was a
        # one-shot awaitable. The reference is kept alive so its id is not reused.
        if resolved is not None or one_shot:
            self._resolved_refs[key] = (reference, resolved)
        return resolved

    def _alias_exports(self, record: ModuleRecord, container: Container) -> None:
        for imported in record.imports:
            descriptor = get_module_descriptor(imported)
            if descriptor is None:
                continue
            for token in descriptor.exports:
                container.register(token, self._root_alias(token))
                logger.debug(f"Imported {token_name(token)} from {imported.__name__} into {record.name}")

    async def _register_providers(
        self, record: ModuleRecord, descriptor: ModuleDescriptor, container: Container
    ) -> None:
        for declared in descriptor.providers:
            provider = module_provider(declared)
            token = provider.token

            if isinstance(provider, FactoryProvider) and provider.is_async:
                args = [self.root.resolve(dep) for dep in provider.inject]
                provider = ValueProvider(await provider.use_factory(*args), provide=token)

            self.root.register(token, provider)
            container.register(token, self._root_alias(token))
            logger.debug(f"Registered provider {token_name(token)} in {record.name}")

    def _register_controllers(
        self, record: ModuleRecord, descriptor: ModuleDescriptor, container: Container
    ) -> None:
        for controller_class in descriptor.controllers:
            if not container.has_local(controller_class):
                container.register(controller_class)

        instances = [(cls, container.resolve(cls)) for cls in descriptor.controllers]

        middleware = descriptor.middleware if self.config.middleware_scope == "module" else ()
        for controller_class, instance in instances:
            record.routes.extend(
                self.composer.compose_controller(
                    instance,
                    controller_class,
                    prefix=descriptor.prefix,
                    middleware=middleware,
                )
            )
            logger.debug(f"Composed controller {controller_class.__name__} in {record.name}")

    def _root_alias(self, token: Any) -> FactoryProvider:
        return FactoryProvider(partial(self.root.resolve, token), provide=token)

    def _rollback(self, record: ModuleRecord) -> None:
        self._records.pop(record.module_class, None)
        self.lifecycle.forget(record.instances)
        record.routes.clear()
        record.mounts.clear()
        if record.container is not None:
            record.container.clear()
        record.registered = False

    def is_module_registered(self, module_class: type) -> bool:
        try:
            return module_class in self._records
        except TypeError:
            return False

    def get_registered_modules(self) -> List[type]:
        """Fully registered modules, in order of completed registration."""
        return list(self._order)

    def get_module_record(self, module_class: type) -> Optional[ModuleRecord]:
        return self._records.get(module_class)

    def get_module_container(self, module_class: type) -> Optional[Container]:
        record = self._records.get(module_class)
        return record.container if record is not None else None

    def resolve_provider(self, token: Any) -> Any:
        """Resolve a provider from the root container."""
        return self.root.resolve(token)

    async def destroy_module(self, module_class: type) -> None:
        """Run destroy hooks of a module, clear its container and unmark it.

        Hook failures are logged and do not stop the teardown.
        """
        record = self._records.pop(module_class, None)
        if record is None:
            return

        await self.lifecycle.run_destroy_hooks(record.name, record.instances)
        record.instances.clear()
        if record.container is not None:
            record.container.clear()
        record.registered = False

        if module_class in self._order:
            self._order.remove(module_class)
        logger.debug(f"Destroyed module {record.name}")

    async def destroy_all_modules(self) -> None:
        """Destroy all registered modules, last registered first."""
        for module_class in reversed(self.get_registered_modules()):
            await self.destroy_module(module_class)

    def clear(self) -> None:
        """Forget all registration state without running any hooks."""
        for record in self._records.values():
            self.lifecycle.forget(record.instances)
        self._records.clear()
        self._order.clear()
        self._resolved_refs.clear()


def create_module_factory(
    router: "Router",
    root: Optional[Container] = None,
    config: Optional[ModuleRegistrationConfig] = None,
) -> ModuleRegistrationFactory:
    """Create a module factory, with a fresh root container unless one is given."""
    return ModuleRegistrationFactory(router, root if root is not None else Container(), config)
