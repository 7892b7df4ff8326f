"""Application factory.

```python
app = create_app(HonorerSettings(debug=True), modules=[AppModule])
uvicorn.run(app)
```

Modules passed to :func:`create_app` are registered when the ASGI
lifespan starts, and every registered module is destroyed, last
registered first, when it ends.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Sequence

from fastapi import FastAPI
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import Response

from ..config.settings import HonorerSettings
from ..di.container import Container
from ..module.factory import ModuleRegistrationConfig, ModuleRegistrationFactory
from ..routing.router import ErrorHandler, StarletteRouter
from .errors import handle_exception


class HonorerApp:
    """ASGI application owning a root container, a router and a module factory."""

    def __init__(
        self,
        settings: Optional[HonorerSettings] = None,
        *,
        modules: Sequence[type] = (),
        root: Optional[Container] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.settings = settings or HonorerSettings()
        self.container = root if root is not None else Container(strict=self.settings.strict_injection)

        self.fastapi = FastAPI(debug=self.settings.debug, lifespan=self._lifespan)
        self.router = StarletteRouter(
            self.fastapi,
            format_response=self.settings.format_response,
            error_handler=error_handler,
            debug=self.settings.debug,
        )
        self.module_factory = ModuleRegistrationFactory(
            self.router,
            self.container,
            ModuleRegistrationConfig.from_settings(self.settings),
        )
        self._startup_modules = list(modules)

        if self.settings.format_response:
            self.fastapi.add_exception_handler(StarletteHTTPException, self._http_exception)

    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        await self.fastapi(scope, receive, send)

    async def register_module(self, module_class: type) -> None:
        await self.module_factory.register_module(module_class)

    async def register_modules(self, modules: Sequence[type]) -> None:
        await self.module_factory.register_modules(modules)

    async def shutdown(self) -> None:
        """Destroy all registered modules, last registered first."""
        await self.module_factory.destroy_all_modules()

    @property
    def routes(self):
        """Route registrations made so far."""
        return list(self.module_factory.composer.registrations)

    async def _http_exception(self, request: Request, exc: StarletteHTTPException) -> Response:
        return handle_exception(exc, debug=self.settings.debug)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        try:
            if self._startup_modules:
                await self.register_modules(self._startup_modules)
                logger.info(
                    f"Registered {len(self.module_factory.get_registered_modules())} module(s), "
                    f"{len(self.routes)} route(s)"
                )
            yield
        finally:
            await self.shutdown()


def create_app(
    settings: Optional[HonorerSettings] = None,
    *,
    modules: Sequence[type] = (),
    root: Optional[Container] = None,
    error_handler: Optional[ErrorHandler] = None,
) -> HonorerApp:
    """Create an honorer application.

    Args:
        settings: Application settings (defaults apply when omitted)
        modules: Modules registered on application startup
        root: Root container (a fresh one is created when omitted)
        error_handler: Replaces the default exception-to-response mapping

    Returns:
        The ASGI application
    """
    return HonorerApp(settings, modules=modules, root=root, error_handler=error_handler)
