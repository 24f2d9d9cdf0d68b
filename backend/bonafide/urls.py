from django.urls import path

from bonafide import views

urlpatterns = [
    path('', views.RequestListCreateView.as_view(), name='request-list-create'),
    path('my/', views.MyRequestsView.as_view(), name='request-my'),
    path('pending/', views.PendingRequestsView.as_view(), name='request-pending'),
    path('dashboard/', views.DashboardView.as_view(), name='request-dashboard'),
    path('ready/', views.ReadyToIssueView.as_view(), name='request-ready'),
    path('<int:id>/', views.RequestDetailView.as_view(), name='request-detail'),
    path('<int:id>/transition/', views.RequestTransitionView.as_view(), name='request-transition'),
    path('<int:id>/certificate/', views.RequestCertificateView.as_view(), name='request-certificate'),
    path('<int:id>/issue/', views.IssueCertificateView.as_view(), name='request-issue'),
]
