"""
Receivers that turn broadcast events into persisted notifications.
"""

from django.dispatch import receiver

from .broadcast import stock_low


@receiver(stock_low)
def queue_low_stock_alerts(sender, organization_id, outlet_id, item_id, item_name, on_ground, **kwargs):
    from .tasks import send_low_stock_alerts

    send_low_stock_alerts.delay(
        str(organization_id), str(outlet_id), str(item_id), item_name, str(on_ground)
    )
