from sqlalchemy import Column, String, Integer, Boolean, ForeignKey
from sqlalchemy.orm import relationship, backref
from movefinder.models.base import BaseModel


class MediaFile(BaseModel):
    __tablename__ = "media_files"
    quote_id = Column(ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    quote = relationship("Quote", backref=backref("media_files", cascade="all, delete-orphan"))
    filename = Column(String(255), nullable=False, unique=True)
    original_name = Column(String(255), nullable=False)
    file_type = Column(String(80), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_path = Column(String(500), nullable=False)
    processed = Column(Boolean, default=False, nullable=False)
