from django.conf import settings
from django.db import models
from ..managers import TenantManager
from .tenancy import Client


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # who changed what, per client
    # Nullable because some actions are system-wide (subscription expiry)
    client = models.ForeignKey(
        Client, null=True, blank=True, on_delete=models.SET_NULL)
    # Nullable for automated actions (celery jobs, management commands)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    action = models.CharField(max_length=50)  # create, update, delete, post
    object_type = models.CharField(max_length=100)  # "Invoice", "JournalEntry"
    object_id = models.CharField(max_length=100)
    # before/after details of what changed
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["client", "user"]),
            models.Index(fields=["client", "created_at"]),
        ]
        ordering = ("-created_at", "-id")

    def __str__(self):
        return (f"[{self.created_at:%Y-%m-%d %H:%M}] {self.user} "
                f"{self.action} {self.object_type}({self.object_id})")
