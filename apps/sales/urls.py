"""
URL configuration for sales app.
"""

from django.urls import path

from . import views

app_name = "sales"

urlpatterns = [
    # POS terminal
    path("api/pos/terminal/", views.terminal_status, name="terminal_status"),
    path("api/pos/cart/add/", views.cart_add, name="cart_add"),
    path("api/pos/cart/remove/", views.cart_remove, name="cart_remove"),
    path("api/pos/cart/clear/", views.cart_clear, name="cart_clear"),
    path("api/pos/cart/settle/", views.cart_settle, name="cart_settle"),
    # Transaction history
    path("api/transactions/", views.SaleTransactionListView.as_view(), name="transaction_list"),
    path(
        "api/transactions/<uuid:id>/",
        views.SaleTransactionDetailView.as_view(),
        name="transaction_detail",
    ),
]
