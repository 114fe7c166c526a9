# storefront/data/models/user.py
from sqlalchemy import Boolean, Column, Integer, String

from storefront.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String, nullable=False)
    #lista adminow = odbiorcy raportu miesiecznego
    is_admin = Column(Boolean, nullable=False, default=False)
