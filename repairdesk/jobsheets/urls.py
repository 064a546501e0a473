from django.urls import path
from .views import (
    jobsheet_list_create, jobsheet_detail, jobsheet_by_number, jobsheet_change_status,
    jobsheet_payments, jobsheet_status_history, jobsheet_overdue, jobsheet_stats,
    payment_list_create, payment_detail,
)

urlpatterns = [
    # Job sheet endpoints
    path('jobsheets/', jobsheet_list_create, name='jobsheet-list-create'),
    path('jobsheets/overdue/', jobsheet_overdue, name='jobsheet-overdue'),
    path('jobsheets/stats/', jobsheet_stats, name='jobsheet-stats'),
    path('jobsheets/number/<str:job_number>/', jobsheet_by_number, name='jobsheet-by-number'),
    path('jobsheets/<int:pk>/', jobsheet_detail, name='jobsheet-detail'),
    path('jobsheets/<int:pk>/status/', jobsheet_change_status, name='jobsheet-change-status'),
    path('jobsheets/<int:pk>/payments/', jobsheet_payments, name='jobsheet-payments'),
    path('jobsheets/<int:pk>/status-history/', jobsheet_status_history, name='jobsheet-status-history'),

    # Payment endpoints
    path('payments/', payment_list_create, name='payment-list-create'),
    path('payments/<int:pk>/', payment_detail, name='payment-detail'),
]
