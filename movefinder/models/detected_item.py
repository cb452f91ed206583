from sqlalchemy import Column, String, Float, Integer, ForeignKey
from sqlalchemy.orm import relationship, backref
from movefinder.models.base import BaseModel


class DetectedItem(BaseModel):
    __tablename__ = "detected_items"
    quote_id = Column(ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    quote = relationship("Quote", backref=backref("detected_items", cascade="all, delete-orphan"))
    item_label = Column(String(120), nullable=False)
    confidence_score = Column(Float, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    estimated_cost = Column(Float)
