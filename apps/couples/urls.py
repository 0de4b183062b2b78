from django.urls import path
from . import views

app_name = 'couples'

urlpatterns = [
    # Onboarding
    path('', views.create_couple, name='create'),
    path('join/', views.join_couple, name='join'),
    path('can-join/<str:couple_code>/', views.can_join, name='can-join'),

    # Current couple
    path('current/', views.current_couple, name='current'),
    path('unlink/', views.unlink_partner, name='unlink'),
    path('repair/', views.repair_pairing, name='repair'),
]
