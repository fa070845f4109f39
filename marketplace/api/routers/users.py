from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from marketplace.data.database import get_db
from marketplace.services.user_service import UserService
from marketplace.domain.schemas import UserCreate, UserRead, AddressIn

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/", response_model=UserRead)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    return UserService(db).create_user(payload)

@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return UserService(db).get_user(user_id)

@router.post("/{user_id}/addresses", response_model=UserRead, status_code=201)
def add_address(user_id: int, payload: AddressIn, db: Session = Depends(get_db)):
    return UserService(db).add_address(user_id, payload)

@router.put("/{user_id}/addresses/{address_id}/select")
def select_address(user_id: int, address_id: int, db: Session = Depends(get_db)):
    """
    Wybór adresu dostawy; ponowny wybór tego samego adresu nic nie zapisuje.
    """
    return UserService(db).select_delivery_address(user_id, address_id)
