from sqlalchemy import Column, String, Integer, Date
from venue_office.db.session import Base

class Holiday(Base):
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
