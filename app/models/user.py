# app/models/user.py
"""
Users table: citizens, collectors and administrators.
Only the fields the engine needs: role, points/level, district, active flag.
`version` is an optimistic-lock counter so concurrent point credits never overwrite each other.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from app.database import Base
from app.models.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), default=UserRole.CITIZEN.value, nullable=False, index=True)
    points = Column(Integer, default=0, nullable=False)
    level = Column(Integer, default=1, nullable=False)
    district_id = Column(Integer, ForeignKey("districts.id"))
    is_active = Column(Boolean, default=True, nullable=False)
    last_activity_at = Column(DateTime)
    created_at = Column(DateTime)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_collector(self) -> bool:
        return self.role == UserRole.COLLECTOR.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self):
        return f"<User {self.id} role={self.role} points={self.points}>"
