import json
from pathlib import Path

from typer.testing import CliRunner

from restgraph.cli import app

runner = CliRunner()

DOC = {
    "swagger": "2.0",
    "paths": {
        "/items/{id}": {
            "get": {
                "operationId": "getItem",
                "parameters": [{"name": "id", "in": "path", "required": True, "type": "string"}],
                "responses": {"200": {"schema": {"$ref": "#/definitions/Item"}}},
            },
            "put": {
                "operationId": "replaceItem",
                "parameters": [
                    {"name": "id", "in": "path", "required": True, "type": "string"},
                    {"name": "item", "in": "body", "schema": {"$ref": "#/definitions/Item"}},
                ],
                "responses": {"200": {"schema": {"$ref": "#/definitions/Item"}}},
            },
        }
    },
    "definitions": {"Item": {"type": "object", "properties": {"name": {"type": "string"}}}},
}


def write(p: Path, doc: dict) -> Path:
    p.write_text(json.dumps(doc), encoding="utf-8")
    return p


def test_endpoints_json(tmp_path: Path):
    path = write(tmp_path / "api.json", DOC)
    result = runner.invoke(app, ["endpoints", str(path), "--format", "json"])

    assert result.exit_code == 0, result.output
    assert '"operation_id": "getItem"' in result.stdout
    assert '"kind": "mutation"' in result.stdout


def test_endpoints_table(tmp_path: Path):
    path = write(tmp_path / "api.json", DOC)
    result = runner.invoke(app, ["endpoints", str(path)])

    assert result.exit_code == 0, result.output
    assert "getItem" in result.stdout
    assert "replaceItem" in result.stdout


def test_sdl_single_document(tmp_path: Path):
    path = write(tmp_path / "api.json", DOC)
    result = runner.invoke(app, ["sdl", str(path)])

    assert result.exit_code == 0, result.output
    assert "type Query {" in result.stdout
    assert "getItem(id: String!): Item!" in result.stdout
    assert "type Mutation {" in result.stdout


def test_sdl_namespaces_to_file(tmp_path: Path):
    a = write(tmp_path / "a.json", DOC)
    b = write(tmp_path / "b.json", DOC)
    out = tmp_path / "out" / "schema.graphql"

    result = runner.invoke(app, ["sdl", "-n", f"alpha={a}", "-n", f"beta={b}", "--out", str(out)])

    assert result.exit_code == 0, result.output
    text = out.read_text(encoding="utf-8")
    assert "type alpha_Item {" in text
    assert "type beta_Item {" in text


def test_sdl_reports_construction_errors(tmp_path: Path):
    doc = {"swagger": "2.0", "paths": {"/x": {"post": {"operationId": "makeX", "responses": {}}}}}
    path = write(tmp_path / "api.json", doc)
    result = runner.invoke(app, ["sdl", str(path)])

    assert result.exit_code == 1
    assert "Did not find any query" in result.output


def test_sdl_rejects_missing_file(tmp_path: Path):
    result = runner.invoke(app, ["sdl", str(tmp_path / "nope.json")])
    assert result.exit_code != 0
