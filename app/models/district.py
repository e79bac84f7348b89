# app/models/district.py
"""
Districts table: administrative areas that group zones, reports and citizens.
Seeded once by scripts/setup/seed_data.py.
"""

from sqlalchemy import Column, Integer, String, Boolean
from app.database import Base


class District(Base):
    __tablename__ = "districts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    city = Column(String(150), nullable=False)
    code = Column(String(20), unique=True)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<District {self.id} {self.name} ({self.city})>"
