from django.urls import path, include


urlpatterns = [
    # Core / Accounts
    path('api/accounts/', include('accounts.urls')),
    path('api/wallet/', include('wallets.urls')),
    path('api/wagers/', include('wagers.urls')),

    # Games
    path('api/coinflip/', include('coinflip.urls')),
    path('api/mines/', include('mines.urls')),
    path('api/limbo/', include('limbo.urls')),
    path('api/roulette/', include('roulette.urls')),
    path('api/upgrader/', include('upgrader.urls')),
    path('api/jackpot/', include('jackpot.urls')),
]
