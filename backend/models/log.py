from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Audit trail of operator actions (who activated, returned or retired what)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    # e.g. EQUIPMENT_CREATE, EQUIPMENT_STATUS, SHIPMENT_DELETE
    action = Column(String(50), index=True)
    # e.g. dvr, printer, stock_items, consumables
    resource = Column(String(50), index=True)
    resource_id = Column(Integer, nullable=True, index=True)
    status = Column(String(20), index=True)
    ip = Column(String(64), nullable=True)

    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)
