from sqlalchemy import Column, Integer, String
from parkpay.database import Base


class Bank(Base):
    __tablename__ = "banks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(10), unique=True, nullable=False)
    name = Column(String(200), nullable=False)

    def __repr__(self):
        return f"<Bank {self.code} {self.name}>"
