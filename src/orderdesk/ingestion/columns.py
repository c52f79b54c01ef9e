"""Column mapping for uploaded order sheets.

Sheets arrive with Korean headers (the order-registration template shared by
the default, post office and Lotte formats), camelCase keys from the partner
API or snake_case keys from internal tools. Everything is normalized to the
snake_case field names used by PlaceOrder.
"""

FIELD_ALIASES = {
    "product_code": ("상품코드", "productCode"),
    "product_name": ("상품명", "productName"),
    "external_order_number": ("자체주문번호", "customOrderNumber", "externalOrderNumber"),
    "quantity": ("수량", "quantity"),
    "orderer_name": ("주문자명", "ordererName"),
    "orderer_phone": ("주문자전화번호", "주문자 전화번호", "ordererPhone"),
    "orderer_address": ("주문자주소", "주문자 주소", "ordererAddress"),
    "recipient_name": ("수령자명", "recipientName"),
    "recipient_mobile": ("수령자휴대폰번호", "수령자 휴대폰번호", "recipientMobile"),
    "recipient_phone": ("수령자전화번호", "수령자 전화번호", "recipientPhone"),
    "recipient_address": ("수령자주소", "수령자 주소", "recipientAddress"),
    "delivery_message": ("배송메시지", "deliveryMessage"),
}

REQUIRED_FIELDS = (
    "product_code",
    "external_order_number",
    "orderer_name",
    "orderer_phone",
    "recipient_name",
    "recipient_mobile",
    "recipient_address",
)


def _clean(value) -> str | None:
    if value is None:
        return None
    # Spreadsheet readers hand back whole numbers as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def normalize_row(raw: dict) -> dict:
    """Map a raw sheet row onto canonical field names."""
    row = {}
    for field, aliases in FIELD_ALIASES.items():
        value = None
        for key in (field, *aliases):
            value = _clean(raw.get(key))
            if value is not None:
                break
        row[field] = value
    return row


def missing_fields(row: dict) -> list[str]:
    return [field for field in REQUIRED_FIELDS if not row.get(field)]


def parse_quantity(value: str | None) -> int:
    """Parse an order quantity; blank means one. Raises ValueError otherwise."""
    if value is None:
        return 1
    number = float(value)
    if not number.is_integer() or number < 1:
        raise ValueError(f"Invalid quantity: {value}")
    return int(number)
