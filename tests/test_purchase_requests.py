import json
from uuid import uuid4

import pytest
from fastapi import status

from conftest import create_account, unique_email

REQUESTS = "/api/v1/purchase-requests"


@pytest.fixture
def car(client, admin):
    _, headers = admin
    response = client.post(
        "/api/v1/cars",
        json={
            "make": "Honda",
            "model": "Civic",
            "year": 2020,
            "color": "White",
            "vin": uuid4().hex[:17].upper(),
            "price": "18500.00",
            "mileage": 30000,
        },
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


def submit_purchase(client, otp_outbox, user, headers, car_id, price="18000.00"):
    response = client.post(
        f"{REQUESTS}/request-otp",
        json={"car_id": car_id, "requested_price": price, "message": "Can I test drive first?"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    return client.post(
        f"{REQUESTS}/verify-otp",
        json={"email": user.email, "code": otp_outbox[(user.email, "PurchaseRequest")], "purpose": "PurchaseRequest"},
        headers=headers,
    )


def test_purchase_request_created_after_verification(client, customer, car, otp_outbox):
    user, headers = customer

    response = submit_purchase(client, otp_outbox, user, headers, car["id"])

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["message"] == "Purchase request created"
    data = response.json()["data"]
    assert data["status"] == "Pending"
    assert data["car_id"] == car["id"]
    assert data["customer_id"] == str(user.id)
    assert data["car"]["vin"] == car["vin"]
    assert data["customer"]["email"] == user.email
    assert data["message"] == "Can I test drive first?"

    mine = client.get(f"{REQUESTS}/my-requests", headers=headers).json()["data"]
    assert [r["id"] for r in mine] == [data["id"]]


def test_nothing_is_created_before_verification(client, customer, car, otp_outbox):
    user, headers = customer
    client.post(
        f"{REQUESTS}/request-otp",
        json={"car_id": car["id"], "requested_price": "17000.00"},
        headers=headers,
    )

    assert client.get(f"{REQUESTS}/my-requests", headers=headers).json()["data"] == []


def test_wrong_code_400(client, customer, car, otp_outbox):
    user, headers = customer
    client.post(f"{REQUESTS}/request-otp", json={"car_id": car["id"], "requested_price": "17000.00"}, headers=headers)
    code = otp_outbox[(user.email, "PurchaseRequest")]
    wrong = "808080" if code != "808080" else "909090"

    response = client.post(
        f"{REQUESTS}/verify-otp",
        json={"email": user.email, "code": wrong, "purpose": "PurchaseRequest"},
        headers=headers,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["data"]["reason"] == "mismatch"


def test_request_otp_requires_login(client, car):
    response = client.post(f"{REQUESTS}/request-otp", json={"car_id": car["id"], "requested_price": "1.00"})
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_non_positive_price_422(client, customer, car):
    _, headers = customer
    response = client.post(
        f"{REQUESTS}/request-otp", json={"car_id": car["id"], "requested_price": "0"}, headers=headers
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_unavailable_car_is_rejected_at_verification(client, admin, customer, car, otp_outbox):
    user, headers = customer
    other, other_headers = create_account(unique_email("buyer"))
    first = submit_purchase(client, otp_outbox, other, other_headers, car["id"])
    _, admin_headers = admin
    client.put(f"{REQUESTS}/{first.json()['data']['id']}", json={"status": "Approved"}, headers=admin_headers)

    response = submit_purchase(client, otp_outbox, user, headers, car["id"])

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Car is not available for purchase"


def test_admin_approval_marks_car_sold(client, admin, customer, car, otp_outbox):
    user, headers = customer
    _, admin_headers = admin
    created = submit_purchase(client, otp_outbox, user, headers, car["id"]).json()["data"]

    pending_ids = [r["id"] for r in client.get(f"{REQUESTS}/pending", headers=admin_headers).json()["data"]]
    assert created["id"] in pending_ids

    response = client.put(
        f"{REQUESTS}/{created['id']}",
        json={"status": "Approved", "admin_notes": "Paperwork on Friday"},
        headers=admin_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["status"] == "Approved"
    assert data["admin_notes"] == "Paperwork on Friday"
    assert data["car"]["is_available"] is False

    car_now = client.get(f"/api/v1/cars/{car['id']}").json()["data"]
    assert car_now["is_available"] is False
    assert car_now["date_sold"] is not None

    pending_ids = [r["id"] for r in client.get(f"{REQUESTS}/pending", headers=admin_headers).json()["data"]]
    assert created["id"] not in pending_ids


def test_owner_and_admin_can_read_others_cannot(client, admin, customer, car, otp_outbox):
    user, headers = customer
    _, admin_headers = admin
    created = submit_purchase(client, otp_outbox, user, headers, car["id"]).json()["data"]
    _, stranger_headers = create_account(unique_email("stranger"))

    assert client.get(f"{REQUESTS}/{created['id']}", headers=headers).status_code == status.HTTP_200_OK
    assert client.get(f"{REQUESTS}/{created['id']}", headers=admin_headers).status_code == status.HTTP_200_OK
    assert client.get(f"{REQUESTS}/{created['id']}", headers=stranger_headers).status_code == status.HTTP_403_FORBIDDEN


def test_listing_all_requests_is_admin_only(client, admin, customer):
    _, admin_headers = admin
    _, headers = customer

    assert client.get(REQUESTS, headers=headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.get(REQUESTS, headers=admin_headers).status_code == status.HTTP_200_OK


def test_admin_deletes_request(client, admin, customer, car, otp_outbox):
    user, headers = customer
    _, admin_headers = admin
    created = submit_purchase(client, otp_outbox, user, headers, car["id"]).json()["data"]

    assert client.delete(f"{REQUESTS}/{created['id']}", headers=admin_headers).status_code == status.HTTP_200_OK
    assert client.get(f"{REQUESTS}/{created['id']}", headers=admin_headers).status_code == status.HTTP_404_NOT_FOUND


def test_payload_issued_for_another_user_is_refused(client, customer, car, otp_outbox):
    """
    Goal: A held request is only ever created for the account it was issued to.
    """
    user, headers = customer
    other, _ = create_account(unique_email("victim"))
    envelope = {"request": {"car_id": car["id"], "requested_price": "15000.00"}, "user_id": str(other.id)}
    client.post(
        "/api/v1/otp/generate",
        json={"email": user.email, "purpose": "PurchaseRequest", "payload": json.dumps(envelope)},
    )

    response = client.post(
        f"{REQUESTS}/verify-otp",
        json={"email": user.email, "code": otp_outbox[(user.email, "PurchaseRequest")], "purpose": "PurchaseRequest"},
        headers=headers,
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["message"] == "Purchase request was issued for another user"
    assert client.get(f"{REQUESTS}/my-requests", headers=headers).json()["data"] == []
