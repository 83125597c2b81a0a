from __future__ import annotations

from pydantic import BaseModel


class UploadImageResponse(BaseModel):
    success: bool
    message: str
    url: str
    filename: str
