import uuid

from sqlalchemy import Column, Uuid

from app.core.db import Base


class BaseModel(Base):
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
