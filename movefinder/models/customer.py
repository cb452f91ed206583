from sqlalchemy import Column, String
from movefinder.models.base import BaseModel


class Customer(BaseModel):
    __tablename__ = "customers"
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(40), nullable=False)
