from propdesk.schemas.common.base import BaseCreateSchema, BaseResponseSchema, BaseSchema, BaseUpdateSchema

__all__ = ["BaseSchema", "BaseCreateSchema", "BaseUpdateSchema", "BaseResponseSchema"]
