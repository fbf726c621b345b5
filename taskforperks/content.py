"""Content negotiation: JSON, or markdown with YAML frontmatter.

A markdown request carries structured fields in its frontmatter and the
helper's free-text pitch as the body. Responses follow the Accept header:
JSON for clients that ask for it, markdown for everyone else.
"""

from __future__ import annotations

import json

import frontmatter
import yaml
from fastapi import Request, Response
from pydantic import BaseModel

from taskforperks.errors import ClaimErrorCode, status_for

# Free-text fields that travel as the markdown body rather than frontmatter
_BODY_KEYS = ("notes", "description")


def _looks_like_json(text: str, content_type: str) -> bool:
    if "application/json" in content_type:
        return True
    # Some clients send JSON without a content-type
    return "text/markdown" not in content_type and text[:1] in ("{", "[")


def _parse_markdown(text: str) -> dict:
    try:
        post = frontmatter.loads(text)
    except yaml.YAMLError as exc:
        raise ValueError("Invalid frontmatter") from exc
    fields = dict(post.metadata)
    body = post.content.strip()
    if body:
        fields["notes"] = body
    return fields


async def parse_body(request: Request) -> dict:
    """Read the request body into a field dict.

    Raises ValueError when the body is neither JSON nor frontmatter markdown,
    or is valid JSON but not an object.
    """
    content_type = request.headers.get("content-type", "")
    text = (await request.body()).decode("utf-8").strip()
    if not text:
        return {}

    if not _looks_like_json(text, content_type):
        return _parse_markdown(text)

    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Body must be an object")
    return data


def wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")


def _to_markdown(data: dict) -> str:
    fields = dict(data)
    body_key = next((k for k in _BODY_KEYS if fields.get(k)), None)
    body = fields.pop(body_key) if body_key else ""
    if not fields:
        return body
    return frontmatter.dumps(frontmatter.Post(body, **fields))


def render_response(
    request: Request,
    data: dict | BaseModel,
    status_code: int = 200,
    headers: dict | None = None,
) -> Response:
    """Return JSON or markdown based on the Accept header."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)

    if wants_json(request):
        return Response(
            content=json.dumps(data, indent=2),
            status_code=status_code,
            media_type="application/json",
            headers=headers,
        )
    return Response(
        content=_to_markdown(data),
        status_code=status_code,
        media_type="text/markdown",
        headers=headers,
    )


def error_response(request: Request, code: ClaimErrorCode) -> Response:
    """`{"error": CODE}` with the status that code maps to."""
    return render_response(request, {"error": code.value}, status_code=status_for(code))
