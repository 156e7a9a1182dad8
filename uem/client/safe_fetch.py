"""
safe_fetch — httpx request wrapper that reports failures to the client dispatcher.

Usage:
    resp = await safe_fetch(client, dispatcher, "/api/uploads", method="POST", json=data)
    if resp.is_success:
        ...

Error responses are reported and still returned. Network failures are
reported and re-raised so callers keep their own retry logic.
"""

import httpx

from uem.client.dispatcher import ClientErrorDispatcher
from uem.client.types import ServerErrorResponse


async def safe_fetch(
    client: httpx.AsyncClient,
    dispatcher: ClientErrorDispatcher,
    url: str,
    method: str = "GET",
    **kwargs,
) -> httpx.Response:
    try:
        resp = await client.request(method, url, **kwargs)
    except httpx.RequestError as e:
        await dispatcher.handle_client_error(
            "NETWORK_ERROR", {"url": url, "errorMessage": str(e)}, e
        )
        raise

    if resp.is_success:
        return resp

    status = {"status": resp.status_code, "statusText": resp.reason_phrase, "url": url}
    content_type = resp.headers.get("content-type", "")

    if "application/json" not in content_type:
        await dispatcher.handle_client_error(
            "SERVER_ERROR", {**status, "contentType": content_type}
        )
        return resp

    try:
        body = resp.json()
    except ValueError as e:
        await dispatcher.handle_client_error(
            "JSON_ERROR", {**status, "errorMessage": str(e)}, e
        )
        return resp

    server_error = ServerErrorResponse.from_payload(body)
    if server_error is not None:
        await dispatcher.handle_server_error(server_error, status)
    else:
        await dispatcher.handle_client_error(
            "UNEXPECTED_ERROR", {**status, "responseBody": body}
        )
    return resp
