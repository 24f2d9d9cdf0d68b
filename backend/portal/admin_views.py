from django.apps import apps
from django.db.models import Count
from django.http import JsonResponse
from django.urls import reverse, NoReverseMatch
from django.contrib.admin.views.decorators import staff_member_required


@staff_member_required
def admin_counts(request):
    """Return admin changelist URL -> object count, plus request counts per status.

    Used by the admin index to show live counts for the portal's models.
    """
    models_data = {}
    for model in apps.get_models():
        if model._meta.app_label not in ('accounts', 'academics', 'certificates', 'bonafide'):
            continue
        try:
            admin_url = reverse(f"admin:{model._meta.app_label}_{model._meta.model_name}_changelist")
        except NoReverseMatch:
            continue
        models_data[admin_url] = model.objects.count()

    BonafideRequest = apps.get_model('bonafide', 'BonafideRequest')
    by_status = {
        row['status']: row['total']
        for row in BonafideRequest.objects.values('status').annotate(total=Count('id')).order_by()
    }

    return JsonResponse({'models': models_data, 'requests_by_status': by_status})
