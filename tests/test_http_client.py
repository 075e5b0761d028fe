import json

import httpx
import pytest

from callwire.codecs import FieldQueryMapEncoder, JsonEncoder
from callwire.http_client import build_httpx_request, create_http_client
from callwire.metadata import CallMetadata
from callwire.resolver import TemplateFactoryResolver
from callwire.settings import Settings
from callwire.target import HardCodedTarget
from callwire.template import RequestTemplate


def _build_client(handler: httpx.MockTransport) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=handler, base_url="http://mock.local")


def test_build_request_applies_target_and_drops_null_headers() -> None:
    template = RequestTemplate("GET", "/repos?page=2").resolve({})
    template.bound_target = HardCodedTarget("https://api.example.com")
    template.headers.override("X-Values", ["a", None])

    request = build_httpx_request(template)

    assert str(request.url) == "https://api.example.com/repos?page=2"
    assert request.headers.get_list("X-Values") == ["a"]


@pytest.mark.anyio
async def test_create_http_client_uses_settings() -> None:
    client = create_http_client(Settings(target_url="http://mock.local", api_timeout=5))
    assert client.base_url.host == "mock.local"
    assert client.timeout.connect == 5
    await client.aclose()


@pytest.mark.anyio
async def test_resolved_template_is_sent_through_client() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/echo/a b"
        assert request.url.params.get_list("tag") == ["x", "y"]
        assert json.loads(request.content.decode()) == {"name": "widget"}
        assert request.headers["content-type"] == "application/json; charset=utf-8"
        return httpx.Response(200, json={"ok": True})

    metadata = CallMetadata(
        config_key="Echo#post(str,list,dict)",
        template=RequestTemplate("POST", "/echo/{value}?tag={tags}"),
        index_to_name={0: ("value",), 1: ("tags",)},
        body_index=2,
    )
    resolver = TemplateFactoryResolver(JsonEncoder(), FieldQueryMapEncoder())
    template = resolver.resolve(HardCodedTarget("http://mock.local"), metadata).create(
        ["a b", ["x", "y"], {"name": "widget"}]
    )

    client = _build_client(httpx.MockTransport(handler))
    response = await client.send(build_httpx_request(template, client))
    assert response.json() == {"ok": True}
    await client.aclose()


def test_build_request_leaves_template_untouched() -> None:
    template = RequestTemplate("GET", "/repos").resolve({})
    template.bound_target = HardCodedTarget("https://api.example.com")

    request = build_httpx_request(template)

    assert str(request.url) == "https://api.example.com/repos"
    assert template.target_url is None
    assert template.url() == "/repos"
