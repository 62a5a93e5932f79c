from uuid import uuid4

from fastapi import status

from conftest import create_account, unique_email

CUSTOMERS = "/api/v1/customers"


def rename(client, headers, customer_id, first_name, last_name="Customer"):
    response = client.put(
        f"{CUSTOMERS}/{customer_id}",
        json={"first_name": first_name, "last_name": last_name},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    return response.json()["data"]


def test_list_only_contains_customers(client, admin, customer):
    admin_user, headers = admin
    user, _ = customer

    response = client.get(CUSTOMERS, headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Customers retrieved"
    emails = [c["email"] for c in response.json()["data"]]
    assert user.email in emails
    assert admin_user.email not in emails
    assert all(c["roles"] == ["Customer"] for c in response.json()["data"])


def test_customer_endpoints_are_admin_only(client, customer):
    user, headers = customer

    assert client.get(CUSTOMERS, headers=headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.get(f"{CUSTOMERS}/search", params={"name": "x"}, headers=headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.get(f"{CUSTOMERS}/{user.id}", headers=headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(f"{CUSTOMERS}/{user.id}", headers=headers).status_code == status.HTTP_403_FORBIDDEN


def test_get_customer(client, admin, customer):
    _, headers = admin
    user, _ = customer

    response = client.get(f"{CUSTOMERS}/{user.id}", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["email"] == user.email


def test_admin_account_is_not_a_customer(client, admin):
    admin_user, headers = admin

    response = client.get(f"{CUSTOMERS}/{admin_user.id}", headers=headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "Customer not found"
    assert client.delete(f"{CUSTOMERS}/{admin_user.id}", headers=headers).status_code == status.HTTP_404_NOT_FOUND


def test_missing_customer_404(client, admin):
    _, headers = admin
    missing = str(uuid4())

    assert client.get(f"{CUSTOMERS}/{missing}", headers=headers).status_code == status.HTTP_404_NOT_FOUND
    response = client.put(f"{CUSTOMERS}/{missing}", json={"city": "Reno"}, headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_search_by_name_and_email_is_case_insensitive(client, admin):
    _, headers = admin
    tag = uuid4().hex[:8]
    first, _ = create_account(unique_email(f"first{tag}"))
    second, _ = create_account(unique_email(f"second{tag}"))
    rename(client, headers, first.id, f"Ada{tag}", "Lovelace")
    rename(client, headers, second.id, "Grace", f"Hopper{tag}")

    by_first = client.get(f"{CUSTOMERS}/search", params={"name": f"ADA{tag}"}, headers=headers).json()["data"]
    assert [c["id"] for c in by_first] == [str(first.id)]

    by_last = client.get(f"{CUSTOMERS}/search", params={"name": f"hopper{tag}"}, headers=headers).json()["data"]
    assert [c["id"] for c in by_last] == [str(second.id)]

    by_email = client.get(f"{CUSTOMERS}/search", params={"email": f"SECOND{tag}"}, headers=headers).json()["data"]
    assert [c["id"] for c in by_email] == [str(second.id)]

    both = client.get(
        f"{CUSTOMERS}/search", params={"name": f"ada{tag}", "email": f"second{tag}"}, headers=headers
    ).json()["data"]
    assert both == []


def test_update_customer(client, admin, customer):
    _, headers = admin
    user, _ = customer

    response = client.put(f"{CUSTOMERS}/{user.id}", json={"city": "Boise"}, headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Customer updated"
    assert response.json()["data"]["city"] == "Boise"
    assert response.json()["data"]["first_name"] == "Test"


def test_delete_customer(client, admin, customer):
    _, headers = admin
    user, _ = customer

    response = client.delete(f"{CUSTOMERS}/{user.id}", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Customer deleted"
    assert client.get(f"{CUSTOMERS}/{user.id}", headers=headers).status_code == status.HTTP_404_NOT_FOUND
