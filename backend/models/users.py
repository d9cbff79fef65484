# backend/models/users.py
from sqlalchemy import Column, Integer, String, Boolean
from database import Base

# Operator account of the inventory backend; stamped on movements, logs and assignments
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    # admin | tech | viewer
    role = Column(String, nullable=False, default="viewer")
    is_active = Column(Boolean, nullable=False, default=True)
