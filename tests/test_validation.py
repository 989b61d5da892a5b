"""Tests for the validation stage, end to end through TestClient."""

import pytest
from pydantic import BaseModel

from routespec import App, Output, Router, RouteSpec, Validate
from routespec.testing import TestClient


def _app(router: Router) -> App:
    app = App()
    app.mount(router)
    return app


class NewUser(BaseModel):
    name: str
    age: int


class TestHeaderFacet:
    @pytest.mark.asyncio
    async def test_coerced_onto_same_headers_object(self) -> None:
        seen = {}

        async def capture(request, next):
            seen["headers"] = request.headers
            return await next(request)

        async def handler(request, next):
            seen["same"] = request.headers is seen["headers"]
            seen["page"] = request.headers["x-page"]
            seen["other"] = request.headers["x-other"]
            return "ok"

        router = Router()
        router.use(capture)
        router.get("/h", handler, validate=Validate(header={"x-page": int}))
        async with TestClient(_app(router)) as client:
            response = await client.get("/h", headers={"X-Page": "3", "X-Other": "keep"})
        assert response.status == 200
        assert seen["same"] is True
        assert seen["page"] == 3
        assert seen["other"] == "keep"

    @pytest.mark.asyncio
    async def test_missing_header(self) -> None:
        router = Router()
        router.get("/h", lambda request, next: "ok", validate=Validate(header={"x-token": str}))
        async with TestClient(_app(router)) as client:
            response = await client.get("/h")
        assert response.status == 400
        data = response.json()
        assert data["status"] == 400
        assert data["facet"] == "header"
        assert data["details"][0]["loc"] == ["x-token"]


class TestQueryFacet:
    @pytest.mark.asyncio
    async def test_coerces_and_defaults(self) -> None:
        def handler(request, next):
            return {"page": request.query["page"], "size": request.query["size"]}

        router = Router()
        router.get("/q", handler, validate=Validate(query={"page": int, "size": (int, 20)}))
        async with TestClient(_app(router)) as client:
            response = await client.get("/q?page=2")
        assert response.json() == {"page": 2, "size": 20}

    @pytest.mark.asyncio
    async def test_repeated_keys_become_lists(self) -> None:
        def handler(request, next):
            return {"ids": request.query["ids"]}

        router = Router()
        router.get("/q", handler, validate=Validate(query={"ids": list[int]}))
        async with TestClient(_app(router)) as client:
            response = await client.get("/q?ids=1&ids=2")
        assert response.json() == {"ids": [1, 2]}

    @pytest.mark.asyncio
    async def test_invalid_query(self) -> None:
        router = Router()
        router.get("/q", lambda request, next: "ok", validate=Validate(query={"page": int}))
        async with TestClient(_app(router)) as client:
            response = await client.get("/q?page=abc")
        assert response.status == 400
        assert response.json()["error"].startswith("page:")


class TestParamsFacet:
    @pytest.mark.asyncio
    async def test_params_replaced_on_both_views(self) -> None:
        seen = {}

        def handler(request, next):
            seen["params"] = request.params
            seen["path_params"] = request.path_params
            return "ok"

        router = Router()
        router.get("/users/{id}", handler, validate=Validate(params={"id": int}))
        async with TestClient(_app(router)) as client:
            await client.get("/users/7")
        assert seen["params"] == {"id": 7}
        assert seen["path_params"] == {"id": 7}

    @pytest.mark.asyncio
    async def test_undeclared_params_kept(self) -> None:
        def handler(request, next):
            return dict(request.params)

        router = Router()
        router.get("/{org}/{id}", handler, validate=Validate(params={"id": int}))
        async with TestClient(_app(router)) as client:
            response = await client.get("/acme/5")
        assert response.json() == {"org": "acme", "id": 5}

    @pytest.mark.asyncio
    async def test_params_without_validation(self) -> None:
        router = Router()
        router.get("/users/{id}", lambda request, next: request.params)
        async with TestClient(_app(router)) as client:
            response = await client.get("/users/abc")
        assert response.json() == {"id": "abc"}


class TestBodyFacet:
    @pytest.mark.asyncio
    async def test_model_instance_on_request(self) -> None:
        def handler(request, next):
            assert isinstance(request.body, NewUser)
            return request.body, 201

        router = Router()
        router.post("/users", handler, validate=Validate(type="json", body=NewUser))
        async with TestClient(_app(router)) as client:
            response = await client.post("/users", json={"name": "ada", "age": "36"})
        assert response.status == 201
        assert response.json() == {"name": "ada", "age": 36}

    @pytest.mark.asyncio
    async def test_form_body_coerced(self) -> None:
        router = Router()
        router.post(
            "/f",
            lambda request, next: request.body,
            validate=Validate(type="form", body={"age": int, "tags": list[str]}),
        )
        async with TestClient(_app(router)) as client:
            response = await client.post("/f", form={"age": "5", "tags": ["a", "b"]})
        assert response.json() == {"age": 5, "tags": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_invalid_body_uses_failure(self) -> None:
        router = Router()
        router.post(
            "/users",
            lambda request, next: "ok",
            validate=Validate(type="json", body=NewUser, failure=422),
        )
        async with TestClient(_app(router)) as client:
            response = await client.post("/users", json={"name": "ada"})
        assert response.status == 422
        data = response.json()
        assert data["facet"] == "body"
        assert data["details"][0]["loc"] == ["age"]


class TestContinueOnError:
    @pytest.mark.asyncio
    async def test_errors_captured_per_facet(self) -> None:
        def handler(request, next):
            return {
                facet: {"status": error.status, "msg": error.msg}
                for facet, error in request.invalid.items()
            }

        router = Router()
        router.post(
            "/c",
            handler,
            validate=Validate(
                type="json",
                query={"page": int},
                body=NewUser,
                continue_on_error=True,
            ),
        )
        async with TestClient(_app(router)) as client:
            response = await client.post("/c?page=x", json={"name": "ada"})
        assert response.status == 200
        data = response.json()
        assert set(data) == {"query", "body"}
        assert data["query"]["status"] == 400
        assert data["query"]["msg"].startswith("page:")

    @pytest.mark.asyncio
    async def test_valid_facets_still_coerced(self) -> None:
        def handler(request, next):
            return {"page": request.query["page"], "invalid": sorted(request.invalid)}

        router = Router()
        router.get(
            "/c",
            handler,
            validate=Validate(
                query={"page": int},
                header={"x-n": int},
                continue_on_error=True,
            ),
        )
        async with TestClient(_app(router)) as client:
            response = await client.get("/c?page=4")
        assert response.json() == {"page": 4, "invalid": ["header"]}


class TestFacetOrder:
    @pytest.mark.asyncio
    async def test_first_failing_facet_reported(self) -> None:
        router = Router()
        router.get(
            "/o/{id}",
            lambda request, next: "ok",
            validate=Validate(header={"x-a": int}, query={"q": int}, params={"id": int}),
        )
        async with TestClient(_app(router)) as client:
            response = await client.get("/o/x?q=x")
        assert response.json()["facet"] == "header"


class TestSpecExposure:
    @pytest.mark.asyncio
    async def test_route_on_state_before_handlers(self) -> None:
        seen = {}

        def handler(request, next):
            seen["route"] = request.state["route"]
            return "ok"

        router = Router()
        router.get("/s", handler, meta={"summary": "exposed"})
        async with TestClient(_app(router)) as client:
            await client.get("/s")
        route = seen["route"]
        assert isinstance(route, RouteSpec)
        assert route.meta == {"summary": "exposed"}
        assert route.methods == ("get",)
        assert route is not router.routes[0]

    @pytest.mark.asyncio
    async def test_snapshot_not_shared_with_callers(self) -> None:
        def handler(request, next):
            request.state["route"].meta["tags"].append("mutated")
            return "ok"

        router = Router()
        router.get("/s", handler, meta={"tags": []})
        async with TestClient(_app(router)) as client:
            await client.get("/s")
        assert router.routes[0].meta == {"tags": []}


class TestOutputValidation:
    @pytest.mark.asyncio
    async def test_valid_output(self) -> None:
        router = Router()
        router.get(
            "/u",
            lambda request, next: {"name": "ada", "age": 36},
            validate=Validate(output={200: NewUser}),
        )
        async with TestClient(_app(router)) as client:
            response = await client.get("/u")
        assert response.status == 200

    @pytest.mark.asyncio
    async def test_invalid_output_is_500(self) -> None:
        router = Router()
        router.get(
            "/u",
            lambda request, next: {"name": "ada"},
            validate=Validate(output={200: NewUser}, continue_on_error=True),
        )
        async with TestClient(_app(router)) as client:
            response = await client.get("/u")
        assert response.status == 500
        assert "response body for status 200" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_unlisted_status_passes(self) -> None:
        router = Router()
        router.get(
            "/u",
            lambda request, next: ("nothing here", 404),
            validate=Validate(output={200: NewUser}),
        )
        async with TestClient(_app(router)) as client:
            response = await client.get("/u")
        assert response.status == 404

    @pytest.mark.asyncio
    async def test_output_headers(self) -> None:
        router = Router()
        router.get(
            "/u",
            lambda request, next: ({"ok": True}, 200, {"X-Total": "abc"}),
            validate=Validate(output={"2xx": Output(headers={"x-total": int})}),
        )
        async with TestClient(_app(router)) as client:
            response = await client.get("/u")
        assert response.status == 500

    @pytest.mark.asyncio
    async def test_checks_after_whole_chain(self) -> None:
        async def first(request, next):
            response = await next(request)
            return response.with_status(201)

        router = Router()
        router.get(
            "/u",
            first,
            lambda request, next: {"wrong": True},
            validate=Validate(output={200: NewUser}),
        )
        async with TestClient(_app(router)) as client:
            response = await client.get("/u")
        # The 201 produced after the inner handler is what gets checked
        assert response.status == 201
