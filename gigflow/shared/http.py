from typing import Any, Optional

def ok(data: Any = None, **extra):
    return {"ok": True, "data": data, **extra}

def err(message: str, code: str = "bad_request", details: Optional[Any] = None) -> dict:
    return {"ok": False, "error": {"code": code, "message": message, "details": details}}
