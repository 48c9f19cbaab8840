from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

def no_store_json(data: Any, status_code: int = 200):
    """Return JSONResponse with no-store caching headers.

    Pydantic models are dumped by alias so per-user payloads keep their camelCase keys.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    elif isinstance(data, list):
        data = [item.model_dump(by_alias=True) if isinstance(item, BaseModel) else item for item in data]
    return JSONResponse(content=jsonable_encoder(data), status_code=status_code, headers=NO_STORE_HEADERS)
