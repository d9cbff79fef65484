# backend/models/consumable.py
from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Text, CheckConstraint, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


# A shipment of consumables (toner, cables, ...) sent to a site/department.
# Its lines take units out of the stock items' available bucket.
class Consumable(Base):
    __tablename__ = "consumables"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=True, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    details = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    lines = relationship(
        "ConsumableLine",
        back_populates="consumable",
        cascade="all, delete-orphan",
        order_by="ConsumableLine.stock_item_id",
    )
    site = relationship("Site")
    department = relationship("Department")

    @property
    def total_units(self) -> int:
        return sum(line.quantity for line in self.lines)


class ConsumableLine(Base):
    __tablename__ = "consumable_lines"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_consumable_lines_quantity_positive"),
        UniqueConstraint("consumable_id", "stock_item_id", name="uq_consumable_lines_item"),
    )

    id = Column(Integer, primary_key=True, index=True)
    consumable_id = Column(Integer, ForeignKey("consumables.id", ondelete="CASCADE"), nullable=False, index=True)
    stock_item_id = Column(Integer, ForeignKey("stock_items.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False)

    consumable = relationship("Consumable", back_populates="lines")
    stock_item = relationship("StockItem", lazy="joined")

    @property
    def stock_label(self):
        return self.stock_item.label if self.stock_item else None
