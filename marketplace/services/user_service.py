from sqlalchemy.orm import Session
from marketplace.data.models.user import UserModel, AddressModel
from marketplace.domain.errors import NotFoundError
from marketplace.repos.user_repo import UserRepo
from marketplace.domain.schemas import UserCreate, UserRead, AddressIn
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        user = UserModel(id=payload.id, name=payload.name)
        created = self.repo.create_user(user)
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        return UserRead.model_validate(self._get(user_id))

    def add_address(self, user_id: int, payload: AddressIn) -> UserRead:
        user = self._get(user_id)
        self.repo.add_address(AddressModel(user_id=user.id, **payload.model_dump()))
        return UserRead.model_validate(user)

    def select_delivery_address(self, user_id: int, address_id: int) -> dict:
        """
        Use Case: Wybor adresu dostawy. Idempotentne - gdy adres juz wybrany,
        nic nie zapisujemy.
        """
        user = self._get(user_id)

        address = next((a for a in user.addresses if a.id == address_id), None)
        if not address:
            raise NotFoundError("Address not found for this user")

        if user.selected_address_id == address_id:
            return {"message": "Address already selected", "selected_address_id": address_id}

        user.selected_address_id = address_id
        self.repo.commit()
        logger.info(f"Uzytkownik {user_id} wybral adres {address_id}")

        return {"message": "Address selected successfully", "selected_address_id": address_id}

    def get_selected_address(self, user_id: int) -> AddressModel:
        user = self._get(user_id)
        if not user.selected_address_id:
            raise NotFoundError("No selected address found. Please select an address first.")

        address = next((a for a in user.addresses if a.id == user.selected_address_id), None)
        if not address:
            raise NotFoundError("Selected address not found in user addresses")
        return address

    def _get(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
