"""Tests for handler chain composition."""

import pytest

from honorer.routing import RequestContext, compose


def make_ctx():
    return RequestContext(method="GET", path="/")


class TestCompose:
    async def test_runs_in_order_around_handler(self):
        trace = []

        async def outer(ctx, call_next):
            trace.append("outer:before")
            result = await call_next()
            trace.append("outer:after")
            return result

        async def inner(ctx, call_next):
            trace.append("inner:before")
            result = await call_next()
            trace.append("inner:after")
            return result

        def handler(ctx):
            trace.append("handler")
            return "done"

        result = await compose([outer, inner], handler)(make_ctx())

        assert result == "done"
        assert trace == ["outer:before", "inner:before", "handler", "inner:after", "outer:after"]

    async def test_short_circuit(self):
        called = []

        async def deny(ctx, call_next):
            return {"denied": True}

        def handler(ctx):
            called.append(True)

        result = await compose([deny], handler)(make_ctx())

        assert result == {"denied": True}
        assert called == []

    async def test_none_after_call_next_uses_downstream_result(self):
        async def observe(ctx, call_next):
            await call_next()

        async def handler(ctx):
            return "from handler"

        assert await compose([observe], handler)(make_ctx()) == "from handler"

    async def test_sync_middleware(self):
        def tag(ctx, call_next):
            ctx.set("tagged", True)
            return call_next()

        def handler(ctx):
            return ctx.get("tagged")

        assert await compose([tag], handler)(make_ctx()) is True

    async def test_middleware_can_replace_result(self):
        async def wrap(ctx, call_next):
            return {"wrapped": await call_next()}

        assert await compose([wrap], lambda ctx: 1)(make_ctx()) == {"wrapped": 1}

    async def test_call_next_twice_raises(self):
        async def twice(ctx, call_next):
            await call_next()
            await call_next()

        with pytest.raises(RuntimeError, match="multiple times"):
            await compose([twice], lambda ctx: None)(make_ctx())

    async def test_variables_shared_along_chain(self):
        async def set_user(ctx, call_next):
            ctx.set("user", "ada")
            return await call_next()

        assert await compose([set_user], lambda ctx: ctx.get("user"))(make_ctx()) == "ada"

    async def test_handler_only(self):
        assert await compose([], lambda ctx: ctx.path)(make_ctx()) == "/"
