"""
URL configuration for inventory app.
"""

from django.urls import path

from . import views

app_name = "inventory"

urlpatterns = [
    # Menu
    path("api/menu/items/", views.MenuItemListCreateView.as_view(), name="menu_item_list"),
    path("api/menu/items/<uuid:id>/", views.MenuItemDetailView.as_view(), name="menu_item_detail"),
    # Stock hub
    path("api/stock/", views.stock_overview, name="stock_overview"),
    path("api/stock/master/", views.MasterStockListView.as_view(), name="master_stock_list"),
    path("api/stock/master/save/", views.save_master_stock, name="master_stock_save"),
    path(
        "api/stock/distributions/", views.DistributionListView.as_view(), name="distribution_list"
    ),
    path("api/stock/distribute/", views.distribute_stock, name="distribute_stock"),
]
