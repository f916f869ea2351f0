"""Shared HTTP utilities for the Yamaha volume service."""

import json
import math

from aiohttp import web

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@web.middleware
async def cors_middleware(request, handler):
    if request.method == "OPTIONS":
        resp = web.Response()
    else:
        resp = await handler(request)
    resp.headers.update(CORS_HEADERS)
    return resp


async def read_json_object(request: web.Request) -> dict | None:
    """Request body as a JSON object, or None if it isn't one."""
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


def is_number(value) -> bool:
    """Finite int or float; JSON booleans, NaN and Infinity don't count."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False  # int too large for a float
