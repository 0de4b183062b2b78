from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # Authentication
    path('logout/', views.logout, name='logout'),

    # Current member
    path('user/', views.current_user, name='current-user'),
]
