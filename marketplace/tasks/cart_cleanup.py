# marketplace/tasks/cart_cleanup.py
from marketplace.celery_worker import celery_app
from marketplace.data.database import SessionLocal
from marketplace.services.cart_service import CartService
from marketplace.services.product_client import ProductClient
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="marketplace.tasks.cart_cleanup.remove_paid_items_task")
def remove_paid_items_task(user_id: int, pairs: list):
    """
    Usuwa z koszyka oplacone pary (product_id, pack_size_id).
    Osobny zapis po utworzeniu platnosci, bez wspolnej transakcji.
    """
    logger.info(f"Cart cleanup for user {user_id} started ({len(pairs)} pairs)")

    db = SessionLocal()
    try:
        service = CartService(db, ProductClient())
        removed = service.remove_paid_items(user_id, [tuple(p) for p in pairs])
        return {"user_id": user_id, "removed": removed}
    finally:
        db.close()
