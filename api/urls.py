from django.urls import path

from . import views

urlpatterns = [
    path("login/", views.login, name="login"),
    path("logout/", views.logout, name="logout"),
    path("filters/", views.filters, name="filters"),
    path("filters/toggle/", views.toggle_option, name="toggle-option"),
    path("filters/select-all/", views.select_all, name="select-all"),
    path("filters/clear/", views.clear_all, name="clear-all"),
    path("filters/select/", views.set_selected, name="set-selected"),
    path("filters/price/", views.set_price_bounds, name="set-price-bounds"),
    path("filters/cutoff/", views.set_date_cutoff, name="set-date-cutoff"),
    path("apply/", views.apply_filters, name="apply-filters"),
    path("groups/", views.groups, name="groups"),
    path("groups/<int:index>/", views.group_detail, name="group-detail"),
    path("download/", views.download_filtered_csv, name="download"),
    path("reload/", views.reload_dataset, name="reload"),
]
