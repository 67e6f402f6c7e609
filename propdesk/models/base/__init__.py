from propdesk.models.base.base_model import Base, BaseModel, TimestampModel
from propdesk.models.base.mixins import TimestampMixin

__all__ = ["Base", "BaseModel", "TimestampModel", "TimestampMixin"]
