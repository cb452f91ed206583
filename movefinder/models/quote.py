from sqlalchemy import Column, String, Float, Date, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship
from movefinder.models.base import BaseModel
from movefinder.core.enums import QuoteStatus


class Quote(BaseModel):
    __tablename__ = "quotes"

    customer_id = Column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    customer = relationship("Customer", backref="quotes")

    move_type = Column(String(20), nullable=False)
    move_date = Column(Date, nullable=False, index=True)
    from_address = Column(Text, nullable=False)
    to_address = Column(Text, nullable=True)
    estimated_size = Column(String(20), nullable=False)
    special_items = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(
        Enum(QuoteStatus, values_callable=lambda e: [m.value for m in e]),
        default=QuoteStatus.PENDING,
        nullable=False,
        index=True,
    )
    estimated_cost = Column(Float, nullable=True)
    final_cost = Column(Float, nullable=True)
