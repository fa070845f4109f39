from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from marketplace.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    # wskaznik na wybrany adres dostawy, bez FK (adres nalezy do usera)
    selected_address_id = Column(Integer, nullable=True)

    addresses = relationship(
        "AddressModel",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="AddressModel.id",
    )


class AddressModel(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    phone = Column(String(10), nullable=True)
    email = Column(String, nullable=True)
    house_no = Column(String, nullable=True)
    landmark = Column(String, nullable=True)
    pincode = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    country = Column(String, nullable=True)
    save_as = Column(String, nullable=False, default="Home")  # Home, Office, Other

    user = relationship("UserModel", back_populates="addresses")

    def as_snapshot(self) -> dict:
        return {
            "address_id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "email": self.email,
            "house_no": self.house_no,
            "landmark": self.landmark,
            "pincode": self.pincode,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "save_as": self.save_as,
        }
