# =============================================================================
# tests/test_generators.py - OpenAPI and Client Generator Tests
# =============================================================================
# Tests for core/generators: the OpenAPI document, its YAML rendering, the
# generated client module and the artefact writers.
# =============================================================================

import types

import pytest
import yaml

from app.artifacts import refresh_artifacts, write_client, write_docs
from app.config import load_config
from core.endpoints import EndpointsFactory
from core.generators import generate_client, generate_openapi, to_yaml
from core.generators.client import method_name, python_type
from core.routing import Routing
from core.schemas import EmptyInput, InputModel, OutputModel


def document_for(routing):
    return generate_openapi(
        routing,
        title="Example API",
        version="1.0.0",
        server_url="http://localhost:8090",
    )


def load_client_module(source):
    module = types.ModuleType("generated_client")
    exec(compile(source, "generated_client.py", "exec"), module.__dict__)
    return module


# =============================================================================
# OpenAPI Document
# =============================================================================

class TestOpenApi:
    """Tests for generate_openapi() on the application routing."""

    def test_metadata(self, routing):
        document = document_for(routing)

        assert document["openapi"] == "3.1.0"
        assert document["info"] == {"title": "Example API", "version": "1.0.0"}
        assert document["servers"] == [{"url": "http://localhost:8090"}]
        assert document["tags"] == [{"name": "users"}]

    def test_one_operation_per_route(self, routing):
        document = document_for(routing)
        operations = [op for methods in document["paths"].values() for op in methods.values()]

        assert len(operations) == len(routing)
        assert set(document["paths"]["/v1/user/{id}"]) == {"get", "post"}

    def test_path_parameter(self, routing):
        operation = document_for(routing)["paths"]["/v1/user/{id}"]["get"]
        parameter = operation["parameters"][0]

        assert operation["operationId"] == "GetV1UserId"
        assert parameter["name"] == "id"
        assert parameter["in"] == "path"
        assert parameter["required"] is True
        assert parameter["schema"]["type"] == "string"
        assert parameter["schema"]["pattern"] == "^[0-9]+$"
        assert parameter["example"] == "12"

    def test_request_body(self, routing):
        operation = document_for(routing)["paths"]["/v1/user/{id}"]["post"]
        media = operation["requestBody"]["content"]["application/json"]

        assert operation["requestBody"]["required"] is True
        assert set(media["schema"]["properties"]) == {"name"}
        assert media["example"] == {"name": "John Doe"}

    def test_positive_response_example(self, routing):
        operation = document_for(routing)["paths"]["/v1/user/{id}"]["get"]
        positive = operation["responses"]["200"]["content"]["application/json"]

        assert positive["example"] == {"demoData": "Querying User 12 succeed!"}
        assert "demoData" in positive["schema"]["properties"]

    def test_error_responses(self, routing):
        document = document_for(routing)
        responses = document["paths"]["/v1/user/{id}"]["get"]["responses"]

        assert responses["400"]["content"]["application/json"]["example"]["statusCode"] == 400
        assert "default" in responses
        assert "ErrorResponse" in document["components"]["schemas"]

    def test_missing_examples_do_not_abort(self):
        class Bare(OutputModel):
            ok: bool

        endpoint = EndpointsFactory().build(
            method="get", input=EmptyInput, output=Bare, handler=lambda **kwargs: {"ok": True}
        )
        document = document_for(Routing({"health": endpoint}))
        positive = document["paths"]["/health"]["get"]["responses"]["200"]["content"]["application/json"]

        assert "example" not in positive
        assert positive["schema"]["properties"]["ok"]["type"] == "boolean"

    def test_handlers_are_never_called(self):
        calls = []

        def handler(**kwargs):
            calls.append(kwargs)
            return {}

        class Query(InputModel):
            page_size: int = 10

        endpoint = EndpointsFactory().build(
            method="get", input=Query, output=OutputModel, handler=handler
        )
        document = document_for(Routing({"items": endpoint}))
        parameters = document["paths"]["/items"]["get"]["parameters"]

        assert calls == []
        assert parameters[0]["name"] == "pageSize"
        assert parameters[0]["in"] == "query"
        assert parameters[0]["required"] is False

    def test_yaml_has_no_anchors(self, routing):
        text = to_yaml(document_for(routing))

        assert "&id" not in text
        assert "*id" not in text
        assert yaml.safe_load(text) == document_for(routing)


# =============================================================================
# Client
# =============================================================================

class TestClientGenerator:
    """Tests for generate_client()."""

    def test_method_names(self):
        assert method_name("GetV1UserId") == "get_v1_user_id"
        assert method_name("PostV1UserId") == "post_v1_user_id"

    @pytest.mark.parametrize("schema, expected", [
        ({"type": "string"}, "str"),
        ({"type": "array", "items": {"type": "integer"}}, "list[int]"),
        ({"anyOf": [{"type": "string"}, {"type": "null"}]}, "str | None"),
        ({"enum": ["a", "b"]}, "Literal['a', 'b']"),
        ({"$ref": "#/components/schemas/Address"}, "Address"),
        ({}, "Any"),
    ])
    def test_python_type(self, schema, expected):
        assert python_type(schema) == expected

    def test_source_is_deterministic(self, routing):
        assert generate_client(routing) == generate_client(routing)

    def test_module_executes(self, routing):
        module = load_client_module(generate_client(routing))

        assert hasattr(module.ApiClient, "get_v1_user_id")
        assert hasattr(module.ApiClient, "post_v1_user_id")
        assert module.GetV1UserIdOutput.__required_keys__ == frozenset({"demoData"})

    def test_round_trip_against_server(self, client, routing, example_service_ok):
        module = load_client_module(generate_client(routing))
        api = module.ApiClient("http://testserver", client=client)

        assert api.get_v1_user_id({"id": "12"}) == {"demoData": "Querying User 12 succeed!"}

        with pytest.raises(module.ApiClientError) as excinfo:
            api.post_v1_user_id({"id": "150", "name": "John Doe"})
        assert excinfo.value.status_code == 404
        assert excinfo.value.envelope["message"] == "User not found"


# =============================================================================
# Artefacts
# =============================================================================

class TestArtifacts:
    """Tests for writing generated files."""

    def test_write_docs(self, tmp_path, routing, settings):
        path = write_docs(routing, settings, tmp_path / "docs" / "api.yaml")

        assert yaml.safe_load(path.read_text())["paths"]["/v1/user/{id}"]

    def test_write_client(self, tmp_path, routing, settings):
        path = write_client(routing, settings, tmp_path / "client.py")

        assert "class ApiClient(_BaseClient):" in path.read_text()

    def test_refresh_respects_flags(self, tmp_path, routing):
        settings = load_config({
            "GENERATE_CLIENT": "true",
            "GENERATE_API_DOCS": "false",
            "CLIENT_OUTPUT_PATH": str(tmp_path / "client.py"),
            "DOCS_OUTPUT_PATH": str(tmp_path / "api.yaml"),
        })
        refresh_artifacts(routing, settings)

        assert (tmp_path / "client.py").exists()
        assert not (tmp_path / "api.yaml").exists()

    def test_refresh_survives_write_failure(self, tmp_path, routing):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        settings = load_config({
            "GENERATE_CLIENT": "true",
            "GENERATE_API_DOCS": "false",
            "CLIENT_OUTPUT_PATH": str(blocker / "client.py"),
        })

        refresh_artifacts(routing, settings)
