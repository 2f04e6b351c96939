"""
HTTP client for communicating with the Inventory service.

This module sends queued scans to the reconciliation endpoint and probes the
service health endpoint for connectivity checks. Failures are reported through
return values, never raised, so a caller can treat them as per-item results.
"""
import logging
import httpx
from typing import Optional, Tuple

from ..config import INVENTORY_SERVICE_URL, TIMEOUT
from .. import schemas

logger = logging.getLogger(__name__)


def build_sync_payload(scan: schemas.PendingMutation) -> dict:
    """
    Request body for POST /sync.
    
    The mutation id travels with the request so the service can recognise a
    replay of a scan it has already applied.
    """
    product_data = scan.product_data.model_dump(exclude_none=True)
    payload = {
        "action": scan.action,
        "barcode": scan.barcode,
        "productData": product_data,
        "mutationId": scan.id
    }
    if scan.zone:
        payload["zone"] = scan.zone
        product_data["zone"] = scan.zone
    return payload


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"{error.get('code', 'ERROR')}: {error['message']}"
    if isinstance(body, dict) and body.get("detail"):
        return f"HTTP {response.status_code}: {body['detail']}"
    return f"HTTP {response.status_code}: {response.text}"


async def sync_scan(
    scan: schemas.PendingMutation,
    token: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None
) -> Tuple[bool, Optional[dict], Optional[str]]:
    """
    Send one queued scan to the inventory service for reconciliation.
    
    Args:
        scan: The queued mutation to apply
        token: JWT bearer token of the signed-in operator
        client: Shared HTTP client (a short-lived one is created when omitted)
        
    Returns:
        Tuple of (success: bool, record: Optional[dict], error_message: Optional[str])
    """
    headers = {"Authorization": f"Bearer {token}"} if token else None
    payload = build_sync_payload(scan)
    
    try:
        if client is None:
            async with httpx.AsyncClient(base_url=INVENTORY_SERVICE_URL, timeout=TIMEOUT) as own_client:
                response = await own_client.post("/sync", json=payload, headers=headers)
        else:
            response = await client.post("/sync", json=payload, headers=headers)
    except httpx.HTTPError as e:
        return False, None, f"Inventory service error: {str(e)}"
    
    if response.status_code != 200:
        return False, None, _error_message(response)
    try:
        return True, response.json(), None
    except ValueError:
        return False, None, f"Invalid response from inventory service: {response.text[:200]}"


async def check_health(client: Optional[httpx.AsyncClient] = None) -> bool:
    """
    Check whether the inventory service is reachable and healthy.
    
    Args:
        client: Shared HTTP client (a short-lived one is created when omitted)
        
    Returns:
        True if GET /healthz answered 200, False on any error
    """
    try:
        if client is None:
            async with httpx.AsyncClient(base_url=INVENTORY_SERVICE_URL, timeout=TIMEOUT) as own_client:
                response = await own_client.get("/healthz")
        else:
            response = await client.get("/healthz")
        return response.status_code == 200
    except httpx.HTTPError as e:
        logger.debug(f"Health check failed: {e}")
        return False
