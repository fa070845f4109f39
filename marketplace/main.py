# marketplace/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uvicorn

from marketplace.data.database import Base, engine
from marketplace.api.routers import users, carts, orders, seller, coupons, payments, health
from marketplace.domain.errors import DomainError
from marketplace.utils.logging import get_logger

# import wszystkich modeli zeby byly w Base.metadata przed create_all
import marketplace.data.models  # noqa: F401

logger = get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    def handle_domain_error(request: Request, e: DomainError):
        return JSONResponse(status_code=e.status_code, content={"detail": e.message})

    @app.exception_handler(RequestValidationError)
    def handle_request_validation(request: Request, e: RequestValidationError):
        errors = [
            {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
            for err in e.errors()
        ]
        return JSONResponse(status_code=400, content={"detail": errors})

    @app.exception_handler(Exception)
    def handle_unexpected(request: Request, e: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {e!r}")
        return JSONResponse(status_code=500, content={"detail": str(e)})


def create_app() -> FastAPI:
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)

    app = FastAPI(
        title="Marketplace Order Service",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(seller.router)
    app.include_router(coupons.router)
    app.include_router(payments.router)

    register_error_handlers(app)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
