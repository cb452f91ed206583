from sqlalchemy import Column, String, Text, ForeignKey
from sqlalchemy.orm import relationship, backref
from movefinder.models.base import BaseModel


class QuoteHistory(BaseModel):
    __tablename__ = "quote_history"

    quote_id = Column(ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)

    quote = relationship("Quote", backref=backref("history", cascade="all, delete-orphan"))

    field_name = Column(String(64), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    changed_by = Column(String(64), nullable=False, default="system")
