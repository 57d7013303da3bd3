"""Logging of finished calls.

:func:`log_on_response` is the response observer installed on every new
:class:`~httpchain.client.Client`.  It emits one record per call through the
``httpchain.log`` logger, at DEBUG level by default, so it is silent unless
the application (or ``httpchain --verbose``) enables it.

The structured fields are attached as ``record.http`` for handlers that
understand them and are also rendered into the message.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from httpchain.codec import (
    MIME_FORM,
    MIME_JSON,
    MIME_TEXT,
    MIME_XML,
    MIME_YAML,
    MIME_X_YAML,
    BodyShape,
    classify_body,
    get_content_type,
)

if TYPE_CHECKING:
    from httpchain.client.response import Response

logger = logging.getLogger(__name__)

LOG_MESSAGE = "log the http request"

_LOGGED_BODY_TYPES = frozenset({MIME_JSON, MIME_FORM, MIME_XML, MIME_YAML, MIME_X_YAML, MIME_TEXT})


def _body_field(content_type: str, body: Any) -> Any:
    shape = classify_body(body)
    if shape is BodyShape.READER or shape is BodyShape.WRITER:
        return None
    if shape is BodyShape.BYTES:
        body = bytes(body).decode("utf-8", errors="replace")
    if isinstance(body, str) and content_type == MIME_JSON and body[:1] in ("{", "["):
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


def log_on_response(
    resp: Response,
    level: int = logging.DEBUG,
    extra_fields: Optional[Callable[[Response], dict[str, Any]]] = None,
) -> None:
    """Log a finished call.

    Args:
        resp: The response of the call.
        level: Logging level of the record.
        extra_fields: Optional callable returning more fields to log,
            inserted before ``err``.
    """
    if not logger.isEnabledFor(level):
        return

    fields: dict[str, Any] = {"method": resp.method, "url": resp.url}

    if resp.request is not None:
        fields["reqheaders"] = dict(resp.request.headers)
        content_type = get_content_type(resp.request.headers)
        if content_type in _LOGGED_BODY_TYPES and resp.request_body is not None:
            body = _body_field(content_type, resp.request_body)
            if body is not None:
                fields["reqbody"] = body

    fields["cost"] = f"{resp.elapsed.total_seconds():.6f}s"
    fields["statuscode"] = resp.status_code

    if resp.raw is not None:
        fields["respheaders"] = dict(resp.raw.headers)

    if extra_fields is not None:
        fields.update(extra_fields(resp))

    err = resp.result()
    if err is not None:
        fields["err"] = str(err)

    rendered = " ".join(f"{key}={value}" for key, value in fields.items())
    logger.log(level, "%s %s", LOG_MESSAGE, rendered, extra={"http": fields})
