from django.contrib.auth import get_user_model
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

User = get_user_model()


class Notification(models.Model):
    """
    Model to store notifications for users.
    Supports in-app notifications with read/unread status.
    """

    LOW_STOCK = "LOW_STOCK"

    NOTIFICATION_TYPES = [
        (LOW_STOCK, _("Low Stock Alert")),
    ]

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text=_("User who will receive this notification"),
    )
    title = models.CharField(max_length=255, help_text=_("Notification title/subject"))
    message = models.TextField(help_text=_("Notification message content"))
    notification_type = models.CharField(
        max_length=20,
        choices=NOTIFICATION_TYPES,
        default=LOW_STOCK,
        help_text=_("Type of notification for styling and filtering"),
    )
    is_read = models.BooleanField(
        default=False, help_text=_("Whether the user has read this notification")
    )
    created_at = models.DateTimeField(
        auto_now_add=True, help_text=_("When the notification was created")
    )
    read_at = models.DateTimeField(
        null=True, blank=True, help_text=_("When the notification was marked as read")
    )
    action_url = models.CharField(
        max_length=255,
        blank=True,
        help_text=_("Path to navigate to when notification is clicked"),
    )

    class Meta:
        db_table = "notifications_notification"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="notif_user_created_idx"),
            models.Index(fields=["user", "is_read", "-created_at"], name="notif_user_read_idx"),
        ]
        verbose_name = _("Notification")
        verbose_name_plural = _("Notifications")

    def __str__(self):
        return f"{self.title} - {self.user.username}"

    def mark_as_read(self):
        """Mark notification as read and set read timestamp"""
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=["is_read", "read_at"])
