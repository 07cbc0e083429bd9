from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from storefront.core.config import Config
from storefront.db.database import Database
from storefront.exceptions import (
    create_exception_handler,
    ConflictException,
    CouponExpiredException,
    ForbiddenException,
    InvalidArgumentException,
    LimitExceededException,
    NotFoundException,
    StorageFailureException,
    UnauthorizedException,
)
from storefront.middleware.auth_middleware import CustomAuthMiddleWare
from storefront.routers.cart import router as cart_router
from storefront.routers.coupons import router as coupons_router
from storefront.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

api_version = Config.API_VERSION
swagger_docs_url = f"/api/{api_version}/docs"
redoc_docs_url = f"/api/{api_version}/redoc"
openapi_url = f"/api/{api_version}/openapi.json"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(Config.LOG_LEVEL)

    # The process owns the database; services only ever see sessions
    database = Database(Config.DATABASE_URL, echo=Config.DB_ECHO)
    await database.connect()
    if Config.DB_CREATE_TABLES:
        await database.init_db()
    app.state.database = database
    logger.info("Storefront API started")

    yield

    await database.disconnect()
    logger.info("Storefront API stopped")


app = FastAPI(
    docs_url=swagger_docs_url,
    redoc_url=redoc_docs_url,
    openapi_url=openapi_url,
    title="Storefront Cart API",
    description="Shopping cart and coupon pricing for the storefront catalog.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'],
    allow_headers=["*"],
)

# Add custom auth middleware after CORS (order matters!)
app.add_middleware(CustomAuthMiddleWare)

# Register endpoints
app.include_router(cart_router, prefix=f'/api/{api_version}/cart', tags=["Cart"])
app.include_router(coupons_router, prefix=f'/api/{api_version}/coupons', tags=["Coupons"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}

# Register custom exceptions
for exception_class in (
    UnauthorizedException,
    ForbiddenException,
    InvalidArgumentException,
    NotFoundException,
    ConflictException,
    LimitExceededException,
    CouponExpiredException,
    StorageFailureException,
):
    app.add_exception_handler(exception_class, create_exception_handler(exception_class.status_code))
