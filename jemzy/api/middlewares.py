import logging

from aiohttp import web

from jemzy.config import SESSION_USER_HEADER
from jemzy.errors import JemzyError, InvalidArgument, Unauthorized

logger = logging.getLogger("jemzy")

USER_ID_KEY = web.RequestKey("user_id", int)


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Render JemzyError as {"error": code, "message": ...} with its status."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except JemzyError as e:
        if e.status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        return web.json_response({"error": e.code, "message": e.message}, status=e.status)
    except Exception:
        logger.exception(f"{request.method} {request.path} crashed")
        return web.json_response({"error": "internal", "message": "internal error"}, status=500)


@web.middleware
async def session_middleware(request: web.Request, handler):
    """
    Put the session's user id on request[USER_ID_KEY] when the header is present.
    The header is set by the authentication layer in front of the API.
    """
    raw = request.headers.get(SESSION_USER_HEADER)
    if raw:
        try:
            request[USER_ID_KEY] = int(raw)
        except ValueError:
            raise InvalidArgument(f"malformed {SESSION_USER_HEADER} header") from None
    return await handler(request)


def require_user(request: web.Request) -> int:
    user_id = request.get(USER_ID_KEY)
    if user_id is None:
        raise Unauthorized("login required")
    return user_id


async def read_json(request: web.Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        # JSONDecodeError and UnicodeDecodeError
        raise InvalidArgument("request body must be UTF-8 JSON") from None
    if not isinstance(body, dict):
        raise InvalidArgument("request body must be a JSON object")
    return body
