import uuid

from core.database import Base
from sqlalchemy import Column, String, Boolean, Uuid
from sqlalchemy.orm import relationship
from models.mixins import CreatedAtMixin, UpdatedAtMixin

class User(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "users"

    #pk
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    #relationships
    refresh_tokens = relationship("RefreshToken", back_populates="user", passive_deletes=True)

    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    is_chirpy_red = Column(Boolean, default=False, nullable=False)
