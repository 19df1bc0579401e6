"""
Standard API response helpers for consistent response formatting.

All endpoints use these helpers so responses share one envelope:
- Success: { "success": true, "data": <payload>, "meta": {...} }
- Error: { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }
"""
from typing import Any

from fastapi.responses import JSONResponse


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: The response payload
        meta: Optional metadata (pagination, timestamps, etc.)

    Returns:
        dict: { "success": true, "data": <data>, "meta": <meta> }
    """
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Error envelope shared by the exception handlers and failed order results."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details,
        },
    }


def paginated_response(
    items: list[Any],
    limit: int,
    offset: int = 0,
    total: int | None = None,
) -> dict[str, Any]:
    """
    Create a standardized paginated response.

    Args:
        items: List of items for this page
        limit: Number of items per page
        offset: Offset of the first item
        total: Total number of items (if None, uses len(items))

    Returns:
        dict: { "success": true, "data": <items>, "meta": { "limit", "offset", "total", "hasMore" } }
    """
    if total is None:
        total = len(items)

    meta = {
        "limit": limit,
        "offset": offset,
        "total": total,
        "hasMore": (offset + limit) < total,
    }

    return success_response(data=items, meta=meta)


# HTTP status for each failed OrderResult error code
RESULT_STATUS_CODES = {
    "validation_error": 400,
    "fulfillment_error": 400,
    "not_found": 404,
    "conflict": 409,
    "payment_not_completed": 402,
    "gateway_error": 502,
    "payment_gateway_error": 502,
    "fulfillment_gateway_error": 502,
    "internal_error": 500,
}


def result_status_code(error_code: str | None) -> int:
    return RESULT_STATUS_CODES.get(error_code or "", 500)


def order_result_response(result, status_code: int = 200) -> JSONResponse:
    """Render an OrderResult: its fields on success, the error envelope on failure."""
    if result.success:
        return JSONResponse(status_code=status_code, content=success_response(result.to_dict()))
    return JSONResponse(
        status_code=result_status_code(result.error_code),
        content=error_body(result.error_code or "internal_error", result.error or "Request failed", {"orderId": result.order_id}),
    )
