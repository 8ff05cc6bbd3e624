import asyncio
import copy
import json
from pathlib import Path

import pytest
from graphql import graphql, print_schema

from restgraph.errors import LoaderError
from restgraph.loader.swagger import assign_titles, dereference, extract_endpoints, load_document
from restgraph.schema.nodes import EnumNode, ObjectNode
from restgraph.schema_builder import create_schema, endpoints_from_document, join_n_create_schema

PETSTORE = {
    "swagger": "2.0",
    "host": "pets.example.com",
    "basePath": "/v1",
    "schemes": ["https"],
    "paths": {
        "/pets/{petId}": {
            "parameters": [{"name": "petId", "in": "path", "required": True, "type": "integer"}],
            "get": {
                "operationId": "getPet",
                "summary": "Find pet by id",
                "responses": {"200": {"description": "ok", "schema": {"$ref": "#/definitions/Pet"}}},
            },
            "delete": {"operationId": "deletePet", "responses": {"204": {"description": "gone"}}},
        },
        "/pets": {
            "get": {
                "operationId": "listPets",
                "parameters": [
                    {"name": "status", "in": "query", "type": "string", "enum": ["available", "sold-out"]}
                ],
                "responses": {"200": {"schema": {"type": "array", "items": {"$ref": "#/definitions/Pet"}}}},
            },
            "post": {
                "operationId": "addPet",
                "parameters": [{"name": "pet", "in": "body", "required": True, "schema": {"$ref": "#/definitions/Pet"}}],
                "responses": {"200": {"schema": {"$ref": "#/definitions/Pet"}}},
            },
        },
    },
    "definitions": {
        "Pet": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "id": {"type": "integer"},
                "name": {"type": "string"},
                "parent": {"$ref": "#/definitions/Pet"},
            },
        }
    },
}

OPENAPI = {
    "openapi": "3.0.0",
    "servers": [{"url": "https://users.example.com/api"}],
    "paths": {
        "/users/{id}": {
            "get": {
                "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}],
                "responses": {
                    "200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}}}
                },
            },
            "patch": {
                "operationId": "updateUser",
                "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}],
                "requestBody": {
                    "required": True,
                    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}},
                },
                "responses": {"default": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}}}},
            },
        }
    },
    "components": {
        "schemas": {"User": {"type": "object", "properties": {"email": {"type": "string"}}}}
    },
}


def test_assign_titles_uses_definition_keys():
    doc = assign_titles(copy.deepcopy(PETSTORE))
    assert doc["definitions"]["Pet"]["title"] == "Pet"

    doc = assign_titles(copy.deepcopy(OPENAPI))
    assert doc["components"]["schemas"]["User"]["title"] == "User"


def test_dereference_shares_targets_and_closes_cycles():
    doc = dereference(copy.deepcopy(PETSTORE))
    pet = doc["paths"]["/pets/{petId}"]["get"]["responses"]["200"]["schema"]

    assert pet["properties"]["parent"] is pet
    assert doc["paths"]["/pets"]["post"]["parameters"][0]["schema"] is pet


def test_dereference_rejects_external_and_missing_refs():
    with pytest.raises(LoaderError):
        dereference({"a": {"$ref": "other.json#/Pet"}})
    with pytest.raises(LoaderError):
        dereference({"a": {"$ref": "#/definitions/Nope"}})


def test_extract_swagger2_endpoints():
    doc = dereference(assign_titles(copy.deepcopy(PETSTORE)))
    endpoints = extract_endpoints(doc)

    assert set(endpoints) == {"getPet", "deletePet", "listPets", "addPet"}
    assert {k for k, e in endpoints.items() if e.mutation} == {"deletePet", "addPet"}

    get_pet = endpoints["getPet"]
    assert get_pet.base_url == "https://pets.example.com/v1"
    assert get_pet.description == "Find pet by id"
    assert isinstance(get_pet.response, ObjectNode)
    assert get_pet.response.title == "Pet"
    assert [(p.name, p.location, p.required) for p in get_pet.parameters] == [("petId", "path", True)]

    status = endpoints["listPets"].parameters[0]
    assert isinstance(status.schema, EnumNode)
    assert endpoints["deletePet"].response is None
    assert endpoints["addPet"].parameters[0].is_body

    opts = get_pet.build_request({"petId": 7})
    assert opts.url == "https://pets.example.com/v1/pets/7"


def test_extract_openapi3_endpoints():
    doc = dereference(assign_titles(copy.deepcopy(OPENAPI)))
    endpoints = extract_endpoints(doc)

    # missing operationId falls back to method + path
    assert set(endpoints) == {"get_users_by_id", "updateUser"}
    update = endpoints["updateUser"]
    assert [p.name for p in update.parameters] == ["id", "body"]
    assert update.parameters[1].required
    assert update.response.title == "User"
    assert update.base_url == "https://users.example.com/api"


def test_extract_rejects_duplicate_operation_ids():
    doc = {
        "swagger": "2.0",
        "paths": {
            "/a": {"get": {"operationId": "same", "responses": {}}},
            "/b": {"get": {"operationId": "same", "responses": {}}},
        },
    }
    with pytest.raises(LoaderError, match="same"):
        extract_endpoints(doc)


def test_base_url_override():
    endpoints = endpoints_from_document(PETSTORE, base_url="http://localhost:8080")
    assert endpoints["getPet"].base_url == "http://localhost:8080"


def test_create_schema_does_not_mutate_input():
    original = copy.deepcopy(PETSTORE)

    async def backend(context, request_options):
        return {}

    create_schema(PETSTORE, backend)
    assert PETSTORE == original


def test_create_schema_from_file_end_to_end(tmp_path: Path):
    path = tmp_path / "petstore.json"
    path.write_text(json.dumps(PETSTORE), encoding="utf-8")
    calls = []

    async def backend(context, request_options):
        calls.append(request_options)
        return {"id": 7, "name": "rex", "parent": {"name": "old rex"}}

    schema = create_schema(str(path), backend)
    sdl = print_schema(schema)
    assert "type Pet {" in sdl
    assert "input PetInput {" in sdl
    assert "enum listPets_status {" in sdl
    assert "sold_out" in sdl

    result = asyncio.run(graphql(schema, "{ getPet(petId: 7) { name parent { name } } }"))
    assert result.errors is None
    assert result.data == {"getPet": {"name": "rex", "parent": {"name": "old rex"}}}
    assert calls[0].url == "https://pets.example.com/v1/pets/7"


def test_enum_argument_reaches_backend_as_original_literal():
    seen = []

    async def backend(context, request_options):
        seen.append(request_options.query)
        return []

    schema = create_schema(PETSTORE, backend)
    result = asyncio.run(graphql(schema, "{ listPets(status: sold_out) { name } }"))

    assert result.errors is None
    assert seen == [{"status": "sold-out"}]


def test_join_n_create_schema():
    async def backend(context, request_options):
        return {"email": "a@b.c"}

    schema = join_n_create_schema({"pets": PETSTORE, "users": OPENAPI}, backend)

    assert set(schema.query_type.fields) == {"pets", "users"}
    assert "pets_Pet" in schema.type_map
    assert "users_User" in schema.type_map


def test_load_document_errors(tmp_path: Path):
    with pytest.raises(LoaderError):
        load_document(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(LoaderError):
        load_document(bad)
