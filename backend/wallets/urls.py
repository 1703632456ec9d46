from django.urls import path
from . import views

urlpatterns = [
    path("balance/", views.balance, name="wallet-balance"),
    path("wagering/", views.wagering_status, name="wallet-wagering"),
    path("withdraw/", views.withdraw, name="wallet-withdraw"),
    path("transactions/", views.TransactionListView.as_view(), name="wallet-transactions"),
]
