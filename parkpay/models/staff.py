from sqlalchemy import Column, Integer, String, DateTime
from parkpay.database import Base


class Staff(Base):
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    role = Column(String(20), nullable=False)   # admin | operator
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Staff {self.email} role={self.role}>"
