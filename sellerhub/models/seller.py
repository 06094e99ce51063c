"""
Seller profile model
"""

from sqlalchemy import Column, String, Boolean, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel

class SellerProfile(Base, TimestampedModel, UUIDModel):
    """Extended seller information"""

    __tablename__ = "seller_profiles"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Business information
    shop_name = Column(String(255), nullable=True)
    business_type = Column(String(100), nullable=True)  # individual, company

    # Serialized JSON document. Older profiles carry admin-edited analytics
    # and their audit trail here; read through LegacyBlobAdapter only.
    business_info = Column(Text, nullable=True)

    is_verified = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    # Relationships
    user = relationship("User", back_populates="seller_profile")
