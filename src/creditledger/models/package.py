"""Credit package (pricing tier) reference data."""
from sqlalchemy import Boolean, Column, Integer, Numeric, String

from creditledger.models.base import Base


class Package(Base):
    """
    Purchasable credit package.

    Uses a small integer id so the pricing widget can reference tiers as 1, 2, 3.
    """

    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # Base currency units (rupees)
    credits = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Package(id={self.id}, name={self.name}, price={self.price}, credits={self.credits})>"
