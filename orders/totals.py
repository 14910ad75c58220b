from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings


def calculate_totals(subtotal, shipping=None):
    """
    Shipping, GST and grand total for a cart subtotal (all integer paise).

    ``shipping`` overrides the configured flat fee when a carrier quote is
    available; negative values are ignored.
    """
    subtotal = int(subtotal)
    if shipping is None or int(shipping) < 0:
        shipping = settings.SHIPPING_FEE_PAISE
    shipping = int(shipping)

    rate = Decimal(settings.GST_PERCENT) / Decimal(100)
    tax = int((Decimal(subtotal + shipping) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return {
        "shipping": shipping,
        "tax": tax,
        "total": subtotal + shipping + tax,
    }
