"""
Thin wrapper around the Transifex REST API (v2).

No retries and no authentication handshake: the credentials are sent as
HTTP basic auth on every request and any non-2xx answer is a TransifexError.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import requests

from langsync.errors import MissingParameterError, TransifexError

API_URL = "https://www.transifex.com/api/2/"
TIMEOUT = 60
XLIFF_TYPE = "XLIFF"


class Transport:
    """Authenticated HTTP session bound to the API root."""

    def __init__(
        self,
        user: str,
        password: str,
        base_url: str = API_URL,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.session = session or requests.Session()
        self.session.auth = (user, password)

    def url(self, command: str) -> str:
        return self.base_url + command.lstrip("/")

    def _check(self, resp: requests.Response, method: str, command: str) -> requests.Response:
        if resp.status_code < 200 or resp.status_code >= 300:
            body = resp.text.strip()
            raise TransifexError(
                f"{method} {command} failed with HTTP {resp.status_code}: {body or resp.reason}",
                resp.status_code,
            )
        return resp

    def _send(
        self,
        method: str,
        command: str,
        params: Optional[dict] = None,
        content_type: str = "application/json",
    ) -> str:
        data = json.dumps(params) if params is not None and content_type == "application/json" else params
        try:
            resp = self.session.request(
                method,
                self.url(command),
                data=data,
                headers={"Content-Type": content_type},
                timeout=TIMEOUT,
            )
        except requests.RequestException as exc:
            raise TransifexError(f"{method} {command} failed: {exc}") from exc
        return self._check(resp, method, command).text

    def post(self, command: str, params: Optional[dict] = None, content_type: str = "application/json") -> str:
        return self._send("POST", command, params, content_type)

    def put(self, command: str, params: Optional[dict] = None, content_type: str = "application/json") -> str:
        return self._send("PUT", command, params, content_type)

    def execute(self, command: str, params: Optional[dict] = None) -> str:
        try:
            resp = self.session.get(self.url(command), params=params, timeout=TIMEOUT)
        except requests.RequestException as exc:
            raise TransifexError(f"GET {command} failed: {exc}") from exc
        return self._check(resp, "GET", command).text

    def execute_json(self, command: str, params: Optional[dict] = None) -> Any:
        text = self.execute(command, params)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise TransifexError(f"GET {command} returned invalid JSON: {exc}") from exc


class BaseObject:
    """Base for API objects; delegates all requests to the transport."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    @property
    def transport(self) -> Transport:
        return self._transport

    def ensure_parameter(self, name: str) -> Any:
        value = getattr(self, name, None)
        if value is None:
            raise MissingParameterError(f"{type(self).__name__} is missing parameter: {name}")
        return value

    def post(self, command: str, params: Optional[dict] = None, content_type: str = "application/json") -> str:
        return self._transport.post(command, params, content_type)

    def put(self, command: str, params: Optional[dict] = None, content_type: str = "application/json") -> str:
        return self._transport.put(command, params, content_type)

    def execute(self, command: str, params: Optional[dict] = None) -> str:
        return self._transport.execute(command, params)

    def execute_json(self, command: str, params: Optional[dict] = None) -> Any:
        return self._transport.execute_json(command, params)


class Resource(BaseObject):
    """One translatable resource (one domain) of a Transifex project."""

    def __init__(
        self,
        transport: Transport,
        project: Optional[str] = None,
        slug: Optional[str] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(transport)
        self.project = project
        self.slug = slug
        self.name = name
        self.content: Optional[str] = None

    def set_content(self, content: str) -> None:
        self.content = content

    def _command(self, suffix: str) -> str:
        project = self.ensure_parameter("project")
        slug = self.ensure_parameter("slug")
        return f"project/{project}/resource/{slug}/{suffix}"

    def create(self) -> None:
        project = self.ensure_parameter("project")
        self.post(
            f"project/{project}/resources/",
            {
                "slug": self.ensure_parameter("slug"),
                "name": self.name or self.slug,
                "i18n_type": XLIFF_TYPE,
                "content": self.ensure_parameter("content"),
            },
        )

    def update_content(self) -> None:
        self.put(self._command("content/"), {"content": self.ensure_parameter("content")})

    def fetch_translation(self, language: str, mode: str = "default") -> bytes:
        """The translated XLIFF document for `language`."""
        data = self.execute_json(self._command(f"translation/{language}/"), {"mode": mode})
        return data.get("content", "").encode("utf-8")


class Project(BaseObject):
    def __init__(self, transport: Transport, slug: Optional[str] = None) -> None:
        super().__init__(transport)
        self.slug = slug

    def resources(self) -> list[Resource]:
        slug = self.ensure_parameter("slug")
        result = []
        for item in self.execute_json(f"project/{slug}/resources/"):
            result.append(Resource(self.transport, slug, item.get("slug"), item.get("name")))
        return result

    def resource(self, slug: str) -> Resource:
        return Resource(self.transport, self.ensure_parameter("slug"), slug)
