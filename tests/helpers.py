"""
Shared test helpers.
"""

from qualinex.models.warranty import WarrantyCreate

TEST_PASSWORD = "Testpass1"


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def warranty_payload(**overrides) -> WarrantyCreate:
    data = {
        "country": "Malaysia",
        "product_series": "Ceramic Pro X",
        "license_plate": "WXY 1234",
        "car_model": "Civic",
        "product_brand": "Qualinex",
        "category": "film",
        "purchase_price": 1200.0,
    }
    data.update(overrides)
    return WarrantyCreate(**data)


def warranty_json(**overrides) -> dict:
    return warranty_payload(**overrides).model_dump(mode="json", exclude_none=True)
