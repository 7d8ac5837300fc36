import pytest
from pydantic import ValidationError

from openapi_engine.app.config import DocumentOptions, EngineConfig
from openapi_engine.tests.helpers import generate_document, post
from openapi_engine.tests.shared_types import Todo

pytestmark = pytest.mark.anyio


def test_defaults():
    config = EngineConfig()

    assert config.OPENAPI_VERSION == "3.0.1"
    assert config.DEFAULT_DOCUMENT_NAME == "v1"
    assert config.SERVER_URLS == []
    assert config.property_naming_policy("created_at") == "createdAt"
    assert config.document_title("v1") == "Application | v1"


def test_from_env(monkeypatch):
    monkeypatch.setenv("OPENAPI_ENGINE_APPLICATION_NAME", "TestApplication")
    monkeypatch.setenv("OPENAPI_ENGINE_SERVER_URLS", "http://localhost:5000, https://api.example.com ,")
    monkeypatch.setenv("OPENAPI_ENGINE_PROPERTY_NAMING", "snake")
    monkeypatch.setenv("OPENAPI_ENGINE_DEFAULT_DOCUMENT_NAME", "internal")

    config = EngineConfig.from_env()

    assert config.APPLICATION_NAME == "TestApplication"
    assert config.SERVER_URLS == ["http://localhost:5000", "https://api.example.com"]
    assert config.PROPERTY_NAMING == "snake"
    assert config.DEFAULT_DOCUMENT_NAME == "internal"


def test_rejects_unknown_naming_policy():
    with pytest.raises(ValidationError):
        EngineConfig(PROPERTY_NAMING="kebab")


def test_rejects_non_3_0_openapi_version():
    with pytest.raises(ValidationError):
        EngineConfig(OPENAPI_VERSION="3.1.0")


def test_config_is_immutable():
    config = EngineConfig()
    with pytest.raises(ValidationError):
        config.APPLICATION_NAME = "Other"


def test_options_register_transformers_fluently():
    options = DocumentOptions(document_name="v2")

    def first(schema, context):
        return None

    def second(schema, context):
        return None

    assert options.add_schema_transformer(first).add_schema_transformer(second) is options
    assert options.schema_transformers == [first, second]
    assert options.document_transformers == []


async def test_servers_and_title_come_from_config():
    config = EngineConfig(APPLICATION_NAME="TestApplication", SERVER_URLS=["http://localhost:5000"])

    document = await generate_document(post("/todos", Todo), config=config)

    assert document.info.title == "TestApplication | v1"
    assert [server.url for server in document.servers] == ["http://localhost:5000"]


async def test_no_servers_when_none_configured():
    document = await generate_document(post("/todos", Todo))
    assert document.servers == []
    assert "servers" in document.to_dict()


async def test_naming_policy_applies_to_members():
    document = await generate_document(post("/todos", Todo), config=EngineConfig(PROPERTY_NAMING="pascal"))

    assert list(document.components.schemas["Todo"].properties) == [
        "Id",
        "Title",
        "Completed",
        "CreatedAt",
    ]
