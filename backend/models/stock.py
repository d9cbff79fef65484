# backend/models/stock.py
from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Date, Numeric, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


# Catalog row for N interchangeable physical units of one equipment model.
# The three counters are only ever changed through services.ledger.StockLedger.
class StockItem(Base):
    __tablename__ = "stock_items"
    __table_args__ = (
        CheckConstraint("total_qty >= 0", name="ck_stock_items_total_non_negative"),
        CheckConstraint("available_qty >= 0", name="ck_stock_items_available_non_negative"),
        CheckConstraint("assigned_qty >= 0", name="ck_stock_items_assigned_non_negative"),
        CheckConstraint("total_qty = available_qty + assigned_qty", name="ck_stock_items_counters_balance"),
    )

    id = Column(Integer, primary_key=True, index=True)
    equipment_type_id = Column(Integer, ForeignKey("equipment_types.id"), nullable=True, index=True)

    brand = Column(String, nullable=False, index=True)
    model = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)

    total_qty = Column(Integer, nullable=False, default=0)
    available_qty = Column(Integer, nullable=False, default=0)
    assigned_qty = Column(Integer, nullable=False, default=0)

    # NULL means "use settings.LOW_STOCK_FALLBACK_THRESHOLD"
    minimum_threshold = Column(Integer, nullable=True)
    acquisition_date = Column(Date, nullable=True)
    acquisition_value = Column(Numeric(12, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    equipment_type = relationship("EquipmentType", lazy="joined")

    @property
    def label(self) -> str:
        return f"{self.brand} {self.model}".strip()

    @property
    def equipment_type_name(self):
        return self.equipment_type.name if self.equipment_type else None


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    # Survives the stock item: retiring the last unit deletes the item row
    stock_item_id = Column(Integer, ForeignKey("stock_items.id", ondelete="SET NULL"), nullable=True, index=True)
    stock_label = Column(String, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # RESERVE, RELEASE, RETIRE, RESTORE, ADJUST
    op = Column(String(10), nullable=False, index=True)
    qty = Column(Integer, nullable=False)
    # Bucket touched by RETIRE/RESTORE (assigned | available)
    bucket = Column(String(10), nullable=True)
    reason = Column(String, nullable=True)

    # Counters right after the movement
    total_after = Column(Integer, nullable=True)
    available_after = Column(Integer, nullable=True)
    assigned_after = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    stock_item = relationship("StockItem")
    user = relationship("User")
