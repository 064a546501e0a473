from django.apps import AppConfig


class JobsheetsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'repairdesk.jobsheets'
    verbose_name = 'Job Sheets'
