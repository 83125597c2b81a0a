from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class PlatformIcon(str, enum.Enum):
    SHOPPING_BAG = "ShoppingBag"
    PACKAGE = "Package"
    HEART = "Heart"
    SHIRT = "Shirt"
    TAG = "Tag"
    USERS = "Users"
    SPARKLES = "Sparkles"
    MESSAGE_CIRCLE = "MessageCircle"
    STORE = "Store"

    @classmethod
    def resolve(cls, name: Any) -> "PlatformIcon":
        """Look up an icon by name, falling back to ``Store`` for unknown names."""

        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            return cls.STORE


class Platform(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    icon: PlatformIcon = PlatformIcon.STORE
    color: str = Field(default="#6366F1", pattern=HEX_COLOR)
    enabled: bool = True

    @field_validator("icon", mode="before")
    @classmethod
    def resolve_icon(cls, value: Any) -> PlatformIcon:
        return PlatformIcon.resolve(value)


class PlatformUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    icon: Optional[PlatformIcon] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    enabled: Optional[bool] = None

    @field_validator("icon", mode="before")
    @classmethod
    def resolve_icon(cls, value: Any) -> PlatformIcon | None:
        return None if value is None else PlatformIcon.resolve(value)
