"""Modules: declaration, registration and lifecycle."""

from .descriptor import (
    ForwardRef,
    ModuleDescriptor,
    clear_registry,
    define_module,
    forward_ref,
    get_module_descriptor,
    is_module,
    module,
)
from .factory import (
    ModuleRecord,
    ModuleRegistrationConfig,
    ModuleRegistrationFactory,
    create_module_factory,
    import_string,
)
from .lifecycle import (
    LifecycleManager,
    OnModuleDestroy,
    OnModuleInit,
    post_construct,
    pre_destroy,
)

__all__ = [
    # Declaration
    "module",
    "define_module",
    "ModuleDescriptor",
    "get_module_descriptor",
    "is_module",
    "forward_ref",
    "ForwardRef",
    "clear_registry",

    # Registration
    "ModuleRegistrationFactory",
    "ModuleRegistrationConfig",
    "ModuleRecord",
    "create_module_factory",
    "import_string",

    # Lifecycle
    "LifecycleManager",
    "OnModuleInit",
    "OnModuleDestroy",
    "post_construct",
    "pre_destroy",
]
