from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'bets'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.BetViewSet, basename='bet')

urlpatterns = [
    # Bet ViewSet routes
    # GET    /api/bets/              - List couple's bets (?status=)
    # POST   /api/bets/              - Create bet
    # GET    /api/bets/{id}/         - Get bet details
    # DELETE /api/bets/{id}/         - Delete open bet (creator)

    # Custom bet actions
    # POST   /api/bets/{id}/approve/   - Approve pending bet (partner)
    # POST   /api/bets/{id}/decline/   - Decline pending bet (partner)
    # POST   /api/bets/{id}/conclude/  - Conclude active bet
    # GET    /api/bets/stats/          - Couple statistics
    # GET    /api/bets/history/        - Concluded bets with winners

    # Include router URLs
    path('', include(router.urls)),
]
