from typing import Any, Optional

# Every response, success or failure, is {"success": bool, "message"?, "data"?}


def success_response(message: Optional[str] = None, data: Any = None, **extra) -> dict:
    response = {"success": True}
    if message:
        response["message"] = message
    if data is not None:
        response["data"] = data
    response.update(extra)
    return response


def error_response(message: str) -> dict:
    return {"success": False, "message": message}
