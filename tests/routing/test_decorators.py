"""Tests for controller and route declaration."""

from typing import Annotated, Any, Dict

from pydantic import BaseModel

from honorer.routing import (
    Body,
    BindingKind,
    ControllerMetadata,
    Param,
    Params,
    Query,
    QueryParam,
    RouteRecord,
    controller,
    define_controller,
    delete,
    get,
    get_controller_metadata,
    get_route_bindings,
    is_controller,
    patch,
    post,
    put,
    use,
)


class CreateUser(BaseModel):
    name: str


def first(ctx, call_next):
    return call_next()


def second(ctx, call_next):
    return call_next()


class TestBindings:
    def test_schema_from_annotation(self):
        def create(self, body: Annotated[CreateUser, Body()], ctx):
            pass

        [binding] = get_route_bindings(create)

        assert binding.index == 0
        assert binding.kind is BindingKind.BODY
        assert binding.schema is CreateUser
        assert binding.validated

    def test_explicit_schema_wins(self):
        def search(self, query: Annotated[Dict[str, Any], Query(CreateUser)], ctx):
            pass

        assert get_route_bindings(search)[0].schema is CreateUser

    def test_raw_annotations_are_unvalidated(self):
        def show(self, params: Annotated[dict, Params()], query: Annotated[Dict[str, str], Query()], ctx):
            pass

        bindings = get_route_bindings(show)

        assert [b.kind for b in bindings] == [BindingKind.PARAM, BindingKind.QUERY]
        assert not any(b.validated for b in bindings)

    def test_named_parameters(self):
        def show(self, user_id: Annotated[str, Param("id")], page: Annotated[str, QueryParam("page")], ctx):
            pass

        bindings = get_route_bindings(show)

        assert [(b.index, b.name) for b in bindings] == [(0, "id"), (1, "page")]
        assert not bindings[0].validated

    def test_unannotated_parameters_skipped(self):
        def handler(self, plain, ctx):
            pass

        assert get_route_bindings(handler) == []


class TestControllerDeclaration:
    def test_routes_in_definition_order(self):
        @controller("/users")
        class UserController:
            @get()
            def index(self, ctx):
                pass

            @post()
            def create(self, ctx):
                pass

            @put("/:id")
            def replace(self, ctx):
                pass

            @patch("/:id")
            def update(self, ctx):
                pass

            @delete("/:id")
            def remove(self, ctx):
                pass

        metadata = get_controller_metadata(UserController)

        assert metadata.prefix == "/users"
        assert [(r.http_method, r.path, r.handler_name) for r in metadata.routes] == [
            ("GET", "", "index"),
            ("POST", "", "create"),
            ("PUT", "/:id", "replace"),
            ("PATCH", "/:id", "update"),
            ("DELETE", "/:id", "remove"),
        ]
        assert is_controller(UserController)

    def test_use_runs_top_to_bottom(self):
        @use(first)
        @use(second)
        class Guarded:
            @get()
            @use(first)
            @use(second)
            def index(self, ctx):
                pass

        metadata = get_controller_metadata(Guarded)

        assert metadata.middleware == (first, second)
        assert metadata.routes[0].middleware == (first, second)

    def test_controller_middleware_argument_precedes_use(self):
        @controller("/admin", middleware=(first,))
        @use(second)
        class AdminController:
            pass

        assert get_controller_metadata(AdminController).middleware == (first, second)

    def test_inherited_routes(self):
        class Base:
            @get("/ping")
            def ping(self, ctx):
                return "pong"

        @controller("/child")
        class Child(Base):
            @get("/own")
            def own(self, ctx):
                pass

        names = [r.handler_name for r in get_controller_metadata(Child).routes]

        assert names == ["own", "ping"]

    def test_explicit_metadata(self):
        class Manual:
            def index(self, ctx):
                return "manual"

        metadata = ControllerMetadata(
            prefix="/manual",
            routes=[RouteRecord(http_method="get", path="/", handler_name="index")],
        )
        define_controller(Manual, metadata)

        assert get_controller_metadata(Manual) is metadata
        assert metadata.routes[0].http_method == "GET"
        assert is_controller(Manual)

    def test_plain_class(self):
        class Plain:
            pass

        assert not is_controller(Plain)
        assert get_controller_metadata(Plain).routes == ()
