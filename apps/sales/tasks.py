"""
Celery tasks for the POS terminal.
"""

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Cart

logger = logging.getLogger(__name__)


@shared_task
def recover_stale_settlements():
    """
    Return carts stuck in "settling" to "building" with their lines intact.

    A cart only stays in settling when the worker died between starting a
    settlement and recording its outcome.
    """
    cutoff = timezone.now() - timedelta(minutes=settings.STALE_SETTLEMENT_MINUTES)
    recovered = 0
    for cart_id in Cart.objects.filter(state=Cart.SETTLING, updated_at__lt=cutoff).values_list(
        "id", flat=True
    ):
        with transaction.atomic():
            cart = Cart.objects.select_for_update().get(pk=cart_id)
            if cart.state != Cart.SETTLING:
                continue
            cart.fail("Settlement was interrupted. Please retry.")
            cart.save()
            recovered += 1

    if recovered:
        logger.warning(f"Recovered {recovered} carts stuck in settlement")
    return recovered
