from django.urls import path

from .api import confirm, create_checkout_session, stripe_webhook

app_name = "payments"

urlpatterns = [
    path("checkout-session/", create_checkout_session, name="checkout_session"),
    path("confirm/", confirm, name="confirm"),
    path("stripe/webhook/", stripe_webhook, name="stripe_webhook"),
]
