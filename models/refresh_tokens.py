from core.database import Base
from sqlalchemy import Column, DateTime, String, Uuid, ForeignKey
from sqlalchemy.orm import relationship
from models.mixins import CreatedAtMixin, UpdatedAtMixin

class RefreshToken(Base, CreatedAtMixin, UpdatedAtMixin):
    """
    Long-lived, server-tracked session credential.

    The token value itself is the key: 64 lowercase hex characters, opaque to
    clients. Rows are never removed by the session protocol; a token stops
    being usable once revoked_at is set or expires_at has passed.
    """
    __tablename__ = "refresh_tokens"

    #pk
    token = Column(String(64), primary_key=True)

    #fk
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="refresh_tokens")

    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
