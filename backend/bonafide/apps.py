from django.apps import AppConfig


class BonafideConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'bonafide'
    verbose_name = 'Bonafide Requests'
