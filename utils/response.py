import math
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette import status


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dump(data: Any) -> Any:
    # camelCase aliases for every pydantic model in the tree
    return jsonable_encoder(data, by_alias=True)


def pagination_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def success(data: Any = None, message: str = "Success", status_code: int = status.HTTP_200_OK) -> JSONResponse:
    body = {"success": True, "message": message, "data": _dump(data), "timestamp": _timestamp()}
    return JSONResponse(status_code=status_code, content=body)


def paginated(data: Any, page: int, limit: int, total: int, message: str = "Success") -> JSONResponse:
    body = {
        "success": True,
        "message": message,
        "data": _dump(data),
        "pagination": pagination_meta(page, limit, total),
        "timestamp": _timestamp(),
    }
    return JSONResponse(status_code=status.HTTP_200_OK, content=body)


def failure(message: str, status_code: int, details: Optional[Any] = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if details is not None:
        body["details"] = jsonable_encoder(details)
    body["timestamp"] = _timestamp()
    return JSONResponse(status_code=status_code, content=body)
