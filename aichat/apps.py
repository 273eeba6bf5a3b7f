from django.apps import AppConfig


class AichatConfig(AppConfig):
    name = "aichat"
    verbose_name = "AI chat"
