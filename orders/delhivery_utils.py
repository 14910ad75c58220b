# orders/delhivery_utils.py
import json
import logging
from urllib.parse import urlencode

import requests
from django.conf import settings

from .exceptions import CarrierError, ConfigurationError

logger = logging.getLogger(__name__)

TRACKING_URL = "https://www.delhivery.com/track/?wb={waybill}"

RATE_KEYS = ("total_amount", "charge", "freight_charge", "cod_charge", "total", "amount")


def extract_rate_value(raw):
    """First numeric charge in a rate response (rupees), or None"""
    if not isinstance(raw, dict):
        return None
    for key in RATE_KEYS:
        value = raw.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str) and value.strip():
            try:
                return float(value)
            except ValueError:
                continue
    return None


class DelhiveryAPI:
    """Delhivery REST client. Base URL, auth scheme and rate path are configurable per account."""

    def __init__(self, token=None):
        self.token = token if token is not None else settings.DELHIVERY_API_TOKEN
        self.base_url = settings.DELHIVERY_BASE_URL.rstrip("/")
        self.auth_scheme = settings.DELHIVERY_AUTH_SCHEME
        self.timeout = settings.DELHIVERY_TIMEOUT

    def get_headers(self):
        if not self.token:
            raise ConfigurationError("Delhivery API token not configured")
        return {"Authorization": f"{self.auth_scheme} {self.token}".strip()}

    def _request(self, method, path, params=None, data=None):
        url = f"{self.base_url}{'' if path.startswith('/') else '/'}{path}"
        headers = self.get_headers()
        if data is not None:
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        try:
            response = requests.request(
                method, url, params=params, data=data, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Delhivery {method} {path} failed: {str(e)}", exc_info=True)
            raise CarrierError("Shipping carrier unavailable")

        if not response.ok:
            logger.error(f"Delhivery {method} {path} returned {response.status_code}: {response.text[:500]}")
            raise CarrierError(response.text or f"Delhivery request failed ({response.status_code})")

        try:
            return response.json()
        except ValueError:
            logger.error(f"Delhivery {method} {path} returned non-JSON body")
            raise CarrierError("Invalid response from shipping carrier")

    def build_shipment_payload(self, order, pickup_location):
        items = list(order.items.all())
        is_cod = order.payment_method == order.PAYMENT_COD
        return {
            "pickup_location": pickup_location,
            "shipments": [
                {
                    "name": order.full_name,
                    "add": f"{order.address_line1} {order.address_line2 or ''}".strip(),
                    "pin": order.postal_code,
                    "city": order.city,
                    "state": order.state,
                    "country": "India" if order.country in ("", "IN") else order.country,
                    "phone": order.phone,
                    "order": order.order_number or str(order.id),
                    "payment_mode": "COD" if is_cod else "Prepaid",
                    "products_desc": ", ".join(item.name for item in items),
                    "amount": order.subtotal / 100,
                    "cod_amount": order.total / 100 if is_cod else 0,
                    "weight": settings.DELHIVERY_DEFAULT_WEIGHT_KG,
                    "quantity": sum(item.quantity for item in items),
                    "shipment_length": settings.DELHIVERY_DEFAULT_LENGTH_CM,
                    "shipment_width": settings.DELHIVERY_DEFAULT_WIDTH_CM,
                    "shipment_height": settings.DELHIVERY_DEFAULT_HEIGHT_CM,
                }
            ],
        }

    def create_shipment(self, order, pickup_location):
        """
        Create a forward shipment. Delhivery expects the JSON document as a
        form field: format=json&data=<json>.
        """
        payload = self.build_shipment_payload(order, pickup_location)
        body = urlencode({"format": "json", "data": json.dumps(payload)})
        data = self._request("POST", "/cmu/create.json", data=body)
        logger.info(f"Delhivery shipment requested for {order.order_number}")
        return data

    def track(self, waybill):
        return self._request("GET", "/v1/packages/json/", params={"waybill": waybill})

    def check_pincode(self, pin):
        return self._request("GET", "/pin-codes/json/", params={"filter_codes": pin})

    def get_rate(self, origin_pin, dest_pin, weight_kg, cod=False, declared_value=None, mode="E"):
        params = {
            "o_pin": origin_pin,
            "d_pin": dest_pin,
            "cgm": max(1, round(weight_kg * 1000)),
            "pt": "COD" if cod else "Pre-paid",
            "md": mode,
        }
        if declared_value is not None:
            params["d_val"] = declared_value
        return self._request("GET", settings.DELHIVERY_RATE_PATH, params=params)
