import atexit

from django.apps import AppConfig


class BetsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.bets'
    verbose_name = 'Bets'

    notifier = None

    def ready(self):
        from .notifications import BetChangeNotifier
        from . import signals  # noqa: F401

        self.notifier = BetChangeNotifier()
        atexit.register(self.notifier.close)
