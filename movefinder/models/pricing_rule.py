from sqlalchemy import Column, String, Float, Boolean, Text, Enum
from movefinder.models.base import BaseModel
from movefinder.core.enums import RuleType


class PricingRule(BaseModel):
    __tablename__ = "pricing_rules"
    rule_name = Column(String(120), unique=True, nullable=False)
    rule_type = Column(Enum(RuleType, values_callable=lambda e: [m.value for m in e]), nullable=False)
    condition_json = Column(Text, nullable=False)
    multiplier = Column(Float, nullable=False)
    fixed_cost = Column(Float, default=0.0, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
