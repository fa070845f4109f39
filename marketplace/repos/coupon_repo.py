from sqlalchemy.orm import Session
from marketplace.data.models.coupon import CouponModel


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_coupon(self, coupon_id: int) -> CouponModel | None:
        return self.db.get(CouponModel, coupon_id)

    def get_by_code(self, code: str) -> CouponModel | None:
        return self.db.query(CouponModel).filter(CouponModel.code == code).one_or_none()

    def get_active_by_code(self, code: str) -> CouponModel | None:
        return (
            self.db.query(CouponModel)
            .filter(CouponModel.code == code, CouponModel.is_active.is_(True))
            .one_or_none()
        )

    def list_by_seller(self, seller_id: int) -> list[CouponModel]:
        return (
            self.db.query(CouponModel)
            .filter(CouponModel.seller_id == seller_id)
            .order_by(CouponModel.id.desc())
            .all()
        )

    def list_active(self) -> list[CouponModel]:
        return (
            self.db.query(CouponModel)
            .filter(CouponModel.is_active.is_(True))
            .order_by(CouponModel.id.desc())
            .all()
        )

    def create_coupon(self, coupon: CouponModel) -> CouponModel:
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def delete_coupon(self, coupon: CouponModel) -> None:
        self.db.delete(coupon)
        self.db.commit()

    def commit(self) -> None:
        self.db.commit()
