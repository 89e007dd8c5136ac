# =============================================================================
# tests/test_pipeline.py - Endpoint Pipeline Tests
# =============================================================================
# Tests for validate -> middleware -> handler -> serialize, driven directly
# through core.pipeline.execute() without an HTTP server.
# =============================================================================

import asyncio

import pytest
from pydantic import Field

from core.endpoints import EndpointsFactory
from core.errors import ConfigurationError, HttpError
from core.middleware import Middleware
from core.pipeline import execute
from core.request import RequestData
from core.routing import Routing
from core.schemas import EmptyInput, InputModel, NumericId, OutputModel


# =============================================================================
# Helpers
# =============================================================================

class ItemInput(InputModel):
    id: NumericId
    page_size: int = 10
    label: str | None = None


class ItemOutput(OutputModel):
    item_id: int
    page_size: int


class TokenInput(InputModel):
    token: str


def run(endpoint, path_params=None, query=None, body=None, template="/items/:id"):
    """Mount one endpoint, resolve it and execute a request."""
    table = Routing({template: endpoint})
    route = table.routes[0]
    request = RequestData(
        method=endpoint.method,
        path=template,
        path_params=path_params or {},
        query=query or {},
        body=body or {},
        request_id="test",
    )
    return asyncio.run(execute(route, request))


@pytest.fixture
def calls():
    return []


@pytest.fixture
def item_endpoint(calls):
    async def handler(*, input, context, logger):
        calls.append(input)
        return {"item_id": input.id, "page_size": input.page_size}

    return EndpointsFactory().build(
        method="get",
        input=ItemInput,
        output=ItemOutput,
        handler=handler,
    )


# =============================================================================
# Input Validation
# =============================================================================

class TestInput:
    """Tests for step 1: merge, validate and transform."""

    def test_numeric_string_becomes_integer(self, item_endpoint, calls):
        """Test that path value "12" reaches the handler as 12."""
        response = run(item_endpoint, path_params={"id": "12"})

        assert response.status_code == 200
        assert calls[0].id == 12
        assert isinstance(calls[0].id, int)
        assert response.body == {"itemId": 12, "pageSize": 10}

    def test_defaults_fill_absent_fields(self, item_endpoint, calls):
        run(item_endpoint, path_params={"id": "1"})

        assert calls[0].page_size == 10
        assert calls[0].label is None

    def test_camel_case_query_key(self, item_endpoint, calls):
        response = run(item_endpoint, path_params={"id": "1"}, query={"pageSize": "25"})

        assert response.status_code == 200
        assert calls[0].page_size == 25

    @pytest.mark.parametrize("raw_id", ["abc", "12abc", "1.5", "-3", ""])
    def test_non_digit_id_is_rejected(self, item_endpoint, calls, raw_id):
        """Test that non-digit ids fail validation and skip the handler."""
        response = run(item_endpoint, path_params={"id": raw_id})

        assert response.status_code == 400
        assert response.body["error"] == "Bad Request"
        assert response.body["statusCode"] == 400
        assert response.body["details"][0]["field"] == "id"
        assert calls == []

    def test_surrounding_blanks_are_trimmed(self, item_endpoint, calls):
        run(item_endpoint, path_params={"id": " 42 "})
        assert calls[0].id == 42

    def test_path_parameter_wins_over_query(self, item_endpoint, calls):
        response = run(item_endpoint, path_params={"id": "1"}, query={"id": "2"})

        assert response.status_code == 200
        assert calls[0].id == 1

    def test_camel_case_query_cannot_replace_path_parameter(self, calls):
        """Test that itemId in the query does not shadow the item_id path value."""
        class OwnedInput(InputModel):
            item_id: NumericId

        async def handler(*, input, context, logger):
            calls.append(input)
            return {"item_id": input.item_id, "page_size": 1}

        endpoint = EndpointsFactory().build(
            method="get", input=OwnedInput, output=ItemOutput, handler=handler
        )
        response = run(
            endpoint,
            path_params={"item_id": "12"},
            query={"itemId": "99"},
            template="/items/:item_id",
        )

        assert response.status_code == 200
        assert calls[0].item_id == 12
        assert response.body["itemId"] == 12

    def test_path_parameter_wins_over_body_alias(self, calls):
        class OwnedInput(InputModel):
            item_id: NumericId

        async def handler(*, input, context, logger):
            calls.append(input)
            return {"item_id": input.item_id, "page_size": 1}

        endpoint = EndpointsFactory().build(
            method="post", input=OwnedInput, output=ItemOutput, handler=handler
        )
        run(
            endpoint,
            path_params={"item_id": "12"},
            body={"itemId": "99"},
            template="/items/:item_id",
        )

        assert calls[0].item_id == 12

    def test_body_and_query_collision_is_rejected(self, calls):
        """Test that one field from body and query is a 400 on that field."""
        async def handler(*, input, context, logger):
            calls.append(input)
            return {"item_id": input.id, "page_size": input.page_size}

        endpoint = EndpointsFactory().build(
            method="post", input=ItemInput, output=ItemOutput, handler=handler
        )
        response = run(
            endpoint,
            path_params={"id": "1"},
            body={"pageSize": 5},
            query={"page_size": "6"},
        )

        assert response.status_code == 400
        assert response.body["details"] == [
            {"field": "pageSize", "message": "Provided by both body and query"}
        ]
        assert calls == []

    def test_name_and_alias_in_one_source_is_rejected(self, item_endpoint, calls):
        response = run(
            item_endpoint,
            path_params={"id": "1"},
            query={"page_size": "5", "pageSize": "6"},
        )

        assert response.status_code == 400
        assert response.body["details"][0]["message"] == "Provided twice in query"
        assert calls == []

    def test_unknown_keys_are_dropped(self, item_endpoint, calls):
        run(item_endpoint, path_params={"id": "1"}, query={"extra": "x"})
        assert not hasattr(calls[0], "extra")

    def test_handler_cannot_mutate_input(self):
        async def mutate(*, input, context, logger):
            input.id = 99
            return {"item_id": input.id, "page_size": 1}

        endpoint = EndpointsFactory().build(
            method="get", input=ItemInput, output=ItemOutput, handler=mutate
        )
        response = run(endpoint, path_params={"id": "1"})

        assert response.status_code == 500


# =============================================================================
# Middleware
# =============================================================================

class TestMiddleware:
    """Tests for step 2: the middleware chain."""

    def test_contributions_accumulate_in_order(self):
        seen = {}

        async def first(*, input, request, context, logger):
            seen["first"] = dict(context)
            return {"a": 1}

        def second(*, input, request, context, logger):
            seen["second"] = dict(context)
            return {"b": context["a"] + 1}

        async def handler(*, input, context, logger):
            seen["handler"] = dict(context)
            return {"item_id": input.id, "page_size": input.page_size}

        endpoint = (
            EndpointsFactory()
            .add_middleware(first)
            .add_middleware(Middleware(handler=second))
            .build(method="get", input=ItemInput, output=ItemOutput, handler=handler)
        )
        response = run(endpoint, path_params={"id": "3"})

        assert response.status_code == 200
        assert seen["first"] == {}
        assert seen["second"] == {"a": 1}
        assert seen["handler"] == {"a": 1, "b": 2}

    def test_failure_short_circuits(self, calls):
        later = []

        async def deny(*, input, request, context, logger):
            raise HttpError(401, "Missing credentials")

        async def never(*, input, request, context, logger):
            later.append(True)
            return {}

        async def handler(*, input, context, logger):
            calls.append(input)
            return {"item_id": 1, "page_size": 1}

        endpoint = (
            EndpointsFactory()
            .add_middleware(deny)
            .add_middleware(never)
            .build(method="get", input=ItemInput, output=ItemOutput, handler=handler)
        )
        response = run(endpoint, path_params={"id": "3"})

        assert response.status_code == 401
        assert response.body == {
            "error": "Unauthorized",
            "message": "Missing credentials",
            "statusCode": 401,
        }
        assert later == []
        assert calls == []

    def test_middleware_schema_is_validated(self, calls):
        async def check_token(*, input, request, context, logger):
            return {"token": input.token}

        async def handler(*, input, context, logger):
            calls.append(context)
            return {"item_id": input.id, "page_size": 1}

        endpoint = (
            EndpointsFactory()
            .add_middleware(Middleware(handler=check_token, input=TokenInput))
            .build(method="get", input=ItemInput, output=ItemOutput, handler=handler)
        )

        missing = run(endpoint, path_params={"id": "1"})
        present = run(endpoint, path_params={"id": "1"}, query={"token": "abc"})

        assert missing.status_code == 400
        assert missing.body["details"][0]["field"] == "token"
        assert present.status_code == 200
        assert calls[0]["token"] == "abc"

    def test_middleware_sees_request_method(self):
        async def provide_method(*, input, request, context, logger):
            return {"method": request.method}

        async def handler(*, input, context, logger):
            assert context["method"] == "get"
            return {"item_id": input.id, "page_size": 1}

        endpoint = (
            EndpointsFactory()
            .add_middleware(provide_method)
            .build(method="get", input=ItemInput, output=ItemOutput, handler=handler)
        )
        assert run(endpoint, path_params={"id": "1"}).status_code == 200

    def test_factory_is_not_mutated(self):
        base = EndpointsFactory()
        extended = base.add_middleware(lambda **kwargs: {})

        assert base.middlewares == ()
        assert len(extended.middlewares) == 1


# =============================================================================
# Handler and Output
# =============================================================================

class TestHandlerAndOutput:
    """Tests for steps 3-5."""

    def test_sync_handler(self):
        def handler(*, input, context, logger):
            return {"item_id": input.id, "page_size": 2}

        endpoint = EndpointsFactory().build(
            method="get", input=ItemInput, output=ItemOutput, handler=handler
        )
        response = run(endpoint, path_params={"id": "8"})

        assert response.status_code == 200
        assert response.body == {"itemId": 8, "pageSize": 2}

    def test_model_instance_is_accepted(self):
        async def handler(*, input, context, logger):
            return ItemOutput(item_id=input.id, page_size=3)

        endpoint = EndpointsFactory().build(
            method="get", input=ItemInput, output=ItemOutput, handler=handler
        )
        assert run(endpoint, path_params={"id": "5"}).body == {"itemId": 5, "pageSize": 3}

    def test_signalled_error_keeps_status_and_message(self):
        async def handler(*, input, context, logger):
            raise HttpError(409, "Already exists")

        endpoint = EndpointsFactory().build(
            method="get", input=ItemInput, output=ItemOutput, handler=handler
        )
        response = run(endpoint, path_params={"id": "5"})

        assert response.status_code == 409
        assert response.body["message"] == "Already exists"
        assert response.body["error"] == "Conflict"

    def test_unexpected_fault_does_not_leak(self):
        async def handler(*, input, context, logger):
            raise ValueError("database password is hunter2")

        endpoint = EndpointsFactory().build(
            method="get", input=ItemInput, output=ItemOutput, handler=handler
        )
        response = run(endpoint, path_params={"id": "5"})

        assert response.status_code == 500
        assert response.body == {
            "error": "Internal Server Error",
            "message": "Internal Server Error",
            "statusCode": 500,
        }

    @pytest.mark.parametrize("bad_output", [
        {"item_id": "not a number", "page_size": 1},
        {"item_id": 1},
        {"item_id": 1, "page_size": 1, "extra": True},
        "plain string",
        None,
    ])
    def test_output_contract_violation(self, bad_output):
        """Test that a malformed return value never reaches the client."""
        async def handler(*, input, context, logger):
            return bad_output

        endpoint = EndpointsFactory().build(
            method="get", input=ItemInput, output=ItemOutput, handler=handler
        )
        response = run(endpoint, path_params={"id": "5"})

        assert response.status_code == 500
        assert response.body["message"] == "Internal Server Error"
        assert "itemId" not in response.body

    def test_declared_success_status(self):
        class Created(OutputModel):
            created: bool = Field(default=True)

        async def handler(*, input, context, logger):
            return {"created": True}

        endpoint = EndpointsFactory().build(
            method="post",
            input=EmptyInput,
            output=Created,
            handler=handler,
            status_code=201,
        )
        response = run(endpoint, template="/items")

        assert response.status_code == 201
        assert response.body == {"created": True}


# =============================================================================
# Endpoint Declaration
# =============================================================================

class TestEndpointDeclaration:
    """Tests for build-time validation of endpoints."""

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError):
            EndpointsFactory().build(
                method="fetch", input=EmptyInput, output=ItemOutput, handler=lambda **kw: {}
            )

    def test_unknown_input_source(self):
        with pytest.raises(ConfigurationError):
            EndpointsFactory().build(
                method="get",
                input=EmptyInput,
                output=ItemOutput,
                handler=lambda **kw: {},
                input_sources=["cookies"],
            )

    def test_duplicate_input_source(self):
        with pytest.raises(ConfigurationError):
            EndpointsFactory().build(
                method="get",
                input=EmptyInput,
                output=ItemOutput,
                handler=lambda **kw: {},
                input_sources=["query", "query"],
            )

    def test_default_sources_per_method(self):
        get = EndpointsFactory().build(
            method="get", input=EmptyInput, output=ItemOutput, handler=lambda **kw: {}
        )
        post = EndpointsFactory().build(
            method="post", input=EmptyInput, output=ItemOutput, handler=lambda **kw: {}
        )

        assert get.input_sources == ("query", "path")
        assert post.input_sources == ("body", "query", "path")

    def test_output_must_be_output_model(self):
        with pytest.raises(ConfigurationError):
            EndpointsFactory().build(
                method="get", input=EmptyInput, output=dict, handler=lambda **kw: {}
            )
