from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from newsdesk.core.database import Base, generate_id, utcnow


class Media(Base):
    __tablename__ = "media"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)  # Display name
    file_name = Column(String(255), nullable=False)  # Name on disk
    file_type = Column(String(100), nullable=False)  # MIME type
    file_size = Column(Integer, nullable=False)  # Bytes
    url = Column(String, nullable=False)
    uploaded_by_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    # Relationships
    uploaded_by = relationship("User", back_populates="media")
