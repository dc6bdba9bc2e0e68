from django.urls import path

from . import views

urlpatterns = [
    path('', views.dashboard, name='dashboard'),
    path('dashboard/data/', views.dashboard_data, name='dashboard-data'),

    # Authentication
    path('login/', views.login_view, name='login'),
    path('logout/', views.logout_view, name='logout'),

    # Vehicles
    path('vehicles/', views.vehicle_list, name='vehicle-list'),
    path('vehicles/new/', views.vehicle_create, name='vehicle-create'),
    path('vehicles/<int:pk>/edit/', views.vehicle_update, name='vehicle-update'),
    path('vehicles/<int:pk>/delete/', views.vehicle_delete, name='vehicle-delete'),

    # Drivers
    path('drivers/', views.driver_list, name='driver-list'),
    path('drivers/new/', views.driver_create, name='driver-create'),
    path('drivers/<int:pk>/edit/', views.driver_update, name='driver-update'),
    path('drivers/<int:pk>/delete/', views.driver_delete, name='driver-delete'),

    # Maintenances
    path('maintenances/', views.maintenance_list, name='maintenance-list'),
    path('maintenances/new/', views.maintenance_create, name='maintenance-create'),
    path('maintenances/<int:pk>/edit/', views.maintenance_update, name='maintenance-update'),
    path('maintenances/<int:pk>/delete/', views.maintenance_delete, name='maintenance-delete'),

    # Routes
    path('routes/', views.route_list, name='route-list'),
    path('routes/start/', views.route_start, name='route-start'),
    path('routes/register/', views.route_register, name='route-register'),
    path('routes/<int:pk>/finish/', views.route_finish, name='route-finish'),
    path('routes/<int:pk>/edit/', views.route_update, name='route-update'),
    path('routes/<int:pk>/delete/', views.route_delete, name='route-delete'),

    # Refuels
    path('refuels/', views.refuel_list, name='refuel-list'),
    path('refuels/new/', views.refuel_create, name='refuel-create'),
    path('refuels/<int:pk>/delete/', views.refuel_delete, name='refuel-delete'),

    # Reports
    path('reports/', views.report_index, name='report-index'),
    path('reports/pdf/', views.report_pdf, name='report-pdf'),

    # Users
    path('users/', views.user_list, name='user-list'),
    path('users/new/', views.user_create, name='user-create'),
    path('users/<int:pk>/edit/', views.user_update, name='user-update'),
    path('users/<int:pk>/delete/', views.user_delete, name='user-delete'),
]
