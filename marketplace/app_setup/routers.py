"""
Registre central des routers (panier, checkout, commandes, moyens de paiement, région, health).
"""
from fastapi import FastAPI
from marketplace.cart.views import router as cart_router
from marketplace.checkout.views import router as checkout_router
from marketplace.orders.views import router as orders_router
from marketplace.payment_methods.views import router as payment_methods_router
from marketplace.region.views import router as region_router
from marketplace.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(orders_router)
    app.include_router(payment_methods_router)
    app.include_router(region_router)
    app.include_router(health_router)
