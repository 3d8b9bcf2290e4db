# storefront/models/store_entry.py
from sqlalchemy import Column, Integer, String, Text, DateTime, func
from storefront.database import Base

# One key of the durable client store (cart, pending order, profile, session)
class StoreEntry(Base):
    __tablename__ = "store_entries" # Table name

    key = Column(String(100), primary_key=True) # Full key including the store prefix
    value = Column(Text, nullable=True) # JSON text; NULL marks a removed key (tombstone)

    # Bumped on every write so other tabs can detect changes
    version = Column(Integer, nullable=False, default=0)
    writer = Column(String(64), nullable=True) # Tab id of the last writer
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
