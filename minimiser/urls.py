from django.urls import path
from . import views

urlpatterns = [
    # Minimisation
    path('api/minimise-dfa/', views.min_dfa, name='minimise_dfa'),
    path('api/strip-loops/', views.strip_fsa_loops, name='strip_loops'),

    # Analysis without modification
    path('api/equivalent-states/', views.equivalent_states, name='equivalent_states'),
    path('api/check-fsa-properties/', views.check_fsa_properties, name='check_fsa_properties'),
]
