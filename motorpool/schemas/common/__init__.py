from motorpool.schemas.common.actor import ActorContext
from motorpool.schemas.common.base import (
    BaseCreateSchema,
    BaseFilterSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)

__all__ = [
    "ActorContext",
    "BaseCreateSchema",
    "BaseFilterSchema",
    "BaseResponseSchema",
    "BaseSchema",
    "BaseUpdateSchema",
]
