"""
# `storefront/main.py` - Application entry point

Builds the FastAPI app: logging, CORS (`ALLOWED_ORIGINS`), the remote-query error
handler and the routers.

**Routers:** `/products` (public), `/cart`, `/orders`, `/users` (Firebase ID token required).
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import get_settings
from storefront.core.errors import RemoteQueryError, remote_query_error_handler
from storefront.routers import carts, orders, products, users

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Storefront API",
    description="Product browsing, cart and order history on Firebase.",
    version="1.0.0",
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RemoteQueryError, remote_query_error_handler)

app.include_router(products.router)
app.include_router(carts.router)
app.include_router(orders.router)
app.include_router(users.router)


@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}


# Run the app directly with uvicorn (for development)
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
