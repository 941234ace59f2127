import httpx
from typing import Optional

from .errors import TransportError
from .types.run import NotificationPayload

async def send_card(
    webhook_uri: str,
    payload: NotificationPayload,
    timeout: float = 15.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.Response:
    """POST the card once. Any transport failure or non-2xx aborts."""
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport) as client:
        try:
            resp = await client.post(webhook_uri, json=payload.to_dict())
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(f"webhook returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"webhook post failed: {type(e).__name__}: {e}") from e
    print(f"[webhook] delivered card ({resp.status_code})")
    return resp
