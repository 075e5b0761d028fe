"""
End-to-end smoke test for callwire.

This script:
1. Declares call metadata for a small mock issue-tracker API.
2. Resolves each call into a request template with the default collaborators.
3. Sends the resulting httpx requests to an in-process mock transport and
   prints what the mock service received.

Usage:
    uv run python scripts/smoke_test.py

The script exits with code 0 if every request reaches the mock service in the
expected shape. Use Ctrl+C to abort.
"""

import asyncio
import json
import logging
import os
from dataclasses import dataclass

import httpx

from callwire import (
    CallMetadata,
    Cookie,
    CookieParamExpander,
    FieldQueryMapEncoder,
    FormEncoder,
    HardCodedTarget,
    RequestTemplate,
    TemplateFactoryResolver,
)
from callwire.http_client import build_httpx_request
from callwire.settings import Settings

MOCK_SERVICE_URL = "http://mock.local"


@dataclass
class IssueRef:
    owner: str
    repo: str


@dataclass
class IssueFilter:
    state: str
    labels: list[str] | None = None


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def build_metadata() -> dict[str, CallMetadata]:
    issues = RequestTemplate("GET", "/repos/{owner}/{repo}/issues?state=all")
    issues.header("Accept", "application/json")

    comment = RequestTemplate("POST", "/repos/{owner}/{repo}/issues/{number}/comments")

    login = RequestTemplate("POST", "/login")
    login.header("Cookie", "session={session}")

    return {
        "Issues#list(IssueRef,IssueFilter)": CallMetadata(
            config_key="Issues#list(IssueRef,IssueFilter)",
            template=issues,
            index_to_name={0: ("owner",), 1: ("repo",)},
            index_to_expand={0},
            query_map_index=2,
        ),
        "Issues#comment(str,str,int,dict)": CallMetadata(
            config_key="Issues#comment(str,str,int,dict)",
            template=comment,
            index_to_name={0: ("owner",), 1: ("repo",), 2: ("number",)},
            body_index=3,
            body_type=dict,
        ),
        "Auth#login(Cookie,str,str)": CallMetadata(
            config_key="Auth#login(Cookie,str,str)",
            template=login,
            index_to_name={0: ("session",), 1: ("username",), 2: ("password",)},
            index_to_expander={0: CookieParamExpander("session")},
            form_params=("username", "password"),
        ),
    }


def mock_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "method": request.method,
            "url": str(request.url),
            "content_type": request.headers.get("content-type"),
            "body": request.content.decode() or None,
        },
    )


async def run_smoke_flow() -> None:
    os.environ.setdefault("CALLWIRE_TARGET_URL", MOCK_SERVICE_URL)
    settings = Settings.load()
    _configure_logging(settings.log_level)

    resolver = TemplateFactoryResolver(FormEncoder(), FieldQueryMapEncoder())
    factories = resolver.resolve_all(HardCodedTarget.from_settings(settings), build_metadata())

    calls = {
        "Issues#list(IssueRef,IssueFilter)": [
            IssueRef("octo", "hello world"),
            IssueFilter(state="open", labels=["bug", "help wanted"]),
        ],
        "Issues#comment(str,str,int,dict)": ["octo", "hello", 7, {"body": "Looks good"}],
        "Auth#login(Cookie,str,str)": [Cookie("session", "abc123"), "octo", "s3cret pass"],
    }

    client = httpx.AsyncClient(
        transport=httpx.MockTransport(mock_handler),
        base_url=settings.target_url,
        timeout=settings.api_timeout,
    )
    try:
        for key, argv in calls.items():
            template = factories[key].create(argv)
            response = await client.send(build_httpx_request(template, client))
            response.raise_for_status()
            print(f"{key} ->", json.dumps(response.json(), indent=2))
        print("Smoke test succeeded")
    finally:
        await client.aclose()


if __name__ == "__main__":
    try:
        asyncio.run(run_smoke_flow())
    except KeyboardInterrupt:
        print("Smoke test interrupted.")
