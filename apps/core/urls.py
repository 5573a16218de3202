from django.urls import path

from rest_framework_simplejwt.views import TokenRefreshView

from . import views

app_name = "core"

urlpatterns = [
    path("health/", views.health_check, name="health_check"),
    # Authentication endpoints
    path("api/auth/login/", views.CustomTokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/auth/signup/", views.signup, name="signup"),
    path("api/auth/me/", views.me, name="me"),
    # Outlets and tables
    path("api/outlets/", views.OutletListCreateView.as_view(), name="outlet_list"),
    path("api/outlets/<uuid:id>/", views.OutletDetailView.as_view(), name="outlet_detail"),
    path(
        "api/outlets/<uuid:outlet_id>/tables/",
        views.RestaurantTableListCreateView.as_view(),
        name="table_list",
    ),
    path("api/tables/<uuid:id>/", views.RestaurantTableDetailView.as_view(), name="table_detail"),
    # Users
    path("api/users/", views.UserListCreateView.as_view(), name="user_list"),
    path("api/users/<int:user_id>/", views.user_update, name="user_update"),
    path("api/users/<int:user_id>/deactivate/", views.user_deactivate, name="user_deactivate"),
    path("api/users/<int:user_id>/reactivate/", views.user_reactivate, name="user_reactivate"),
    # Settings
    path("api/settings/reset/", views.reset_data, name="reset_data"),
]
