import pytest
from httpx import AsyncClient

from commerce_iam.app.services.session_cache import actor_email_key, actor_id_key, permissions_key
from tests.integration.flows import login, onboard


@pytest.mark.asyncio
async def test_me(client: AsyncClient, notifier, test_data):
    owner = await onboard(client, notifier, test_data.actor("owner"))

    response = await client.get("/me", headers=owner["headers"])

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "owner@shop.com"
    assert data["user"]["role"] == "SUPER ADMIN"
    assert len(data["permissions"]) == 19


@pytest.mark.asyncio
async def test_me_rejects_bad_token(client: AsyncClient):
    response = await client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_profile_email_change_moves_cache_entry(client: AsyncClient, notifier, cache, test_data):
    """Email change

    Given a logged-in actor whose profile is cached
    When I change my email
    Then the old email key is gone, the new one holds the actor
    And the account must be verified again
    """
    owner = await onboard(client, notifier, test_data.actor("owner"))
    assert await cache.get(actor_email_key("owner@shop.com")) is not None

    response = await client.patch(
        "/me", json={"email": "boss@shop.com", "firstName": "Liv"}, headers=owner["headers"]
    )

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "boss@shop.com"
    assert data["user"]["email_verified"] is False
    assert data["token"]
    assert await cache.get(actor_email_key("owner@shop.com")) is None
    assert (await cache.get(actor_email_key("boss@shop.com")))["first_name"] == "Liv"
    assert (await cache.get(actor_id_key(owner["id"])))["email"] == "boss@shop.com"
    assert "verify-email/?userId=" in notifier.last_text("boss@shop.com")


@pytest.mark.asyncio
async def test_profile_email_taken(client: AsyncClient, notifier, test_data):
    owner = await onboard(client, notifier, test_data.actor("owner"))
    await onboard(client, notifier, test_data.actor("customer"))

    response = await client.patch("/me", json={"email": "casey@shop.com"}, headers=owner["headers"])

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_change_role_to_admin_syncs_permissions(client: AsyncClient, notifier, cache, test_data):
    """Role change with permission sync

    Given a super admin and a customer
    When the super admin assigns the ADMIN role to the customer
    Then the customer's permissions equal the ADMIN matrix
    And the cached projections reflect the new role without a new login
    """
    owner = await onboard(client, notifier, test_data.actor("owner"))
    staff = await onboard(client, notifier, test_data.actor("staff"))
    created = await client.post("/roles", json={"name": "admin"}, headers=owner["headers"])
    assert created.status_code == 201
    admin_role_id = created.json()["role"]["id"]

    response = await client.patch(
        f"/users/{staff['id']}/role", json={"roleId": admin_role_id}, headers=owner["headers"]
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "User role and permissions updated successfully"
    assert data["user"]["role"] == "ADMIN"
    by_name = {p["name"]: p for p in data["permissions"]}
    assert by_name["Role"]["can_delete"] is True
    assert by_name["Product Review"]["can_update"] is False
    assert "Media" not in by_name

    me = await client.get("/me", headers=staff["headers"])
    assert me.json()["user"]["role"] == "ADMIN"
    cached = {p["name"]: p for p in await cache.get(permissions_key(staff["id"]))}
    assert cached["User"]["can_update"] is True


@pytest.mark.asyncio
async def test_customer_cannot_change_roles(client: AsyncClient, notifier, test_data):
    owner = await onboard(client, notifier, test_data.actor("owner"))
    customer = await onboard(client, notifier, test_data.actor("customer"))

    response = await client.patch(
        f"/users/{owner['id']}/role",
        json={"roleId": customer["login"]["user"]["role_id"], "password": test_data.actor("customer")["password"]},
        headers=customer["headers"],
    )

    assert response.status_code == 403
    assert response.json()["code"] == "AUTHORIZATION_ERROR"


@pytest.mark.asyncio
async def test_super_admin_cannot_change_own_role(client: AsyncClient, notifier, test_data):
    owner = await onboard(client, notifier, test_data.actor("owner"))
    customer = await onboard(client, notifier, test_data.actor("customer"))

    response = await client.patch(
        f"/users/{owner['id']}/role",
        json={"roleId": customer["login"]["user"]["role_id"]},
        headers=owner["headers"],
    )

    assert response.status_code == 403
    assert response.json()["guard"] == "PROTECTED_ROLE"


@pytest.mark.asyncio
async def test_update_and_read_permissions(client: AsyncClient, notifier, cache, test_data):
    """Direct permission edit

    Given a super admin and a customer
    When the super admin grants Media access to the customer
    Then the customer's permissions include it, in persistence and in the cache
    """
    owner = await onboard(client, notifier, test_data.actor("owner"))
    customer = await onboard(client, notifier, test_data.actor("customer"))

    response = await client.put(
        f"/users/{customer['id']}/permissions",
        json={"permissions": [{"name": "Media", "can_read": True, "can_create": True}]},
        headers=owner["headers"],
    )

    assert response.status_code == 200
    cached = {p["name"]: p for p in await cache.get(permissions_key(customer["id"]))}
    assert cached["Media"]["can_create"] is True

    own = await client.get(
        f"/users/{customer['id']}/permissions", params={"name": "Media"}, headers=customer["headers"]
    )
    assert own.status_code == 200
    assert [p["name"] for p in own.json()["permissions"]] == ["Media"]


@pytest.mark.asyncio
async def test_customer_cannot_read_other_permissions(client: AsyncClient, notifier, test_data):
    owner = await onboard(client, notifier, test_data.actor("owner"))
    customer = await onboard(client, notifier, test_data.actor("customer"))

    response = await client.get(f"/users/{owner['id']}/permissions", headers=customer["headers"])

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_capability_is_rejected(client: AsyncClient, notifier, test_data):
    owner = await onboard(client, notifier, test_data.actor("owner"))
    customer = await onboard(client, notifier, test_data.actor("customer"))

    response = await client.put(
        f"/users/{customer['id']}/permissions",
        json={"permissions": [{"name": "Spaceship", "can_read": True}]},
        headers=owner["headers"],
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_relogin_after_role_change_sees_new_role(client: AsyncClient, notifier, test_data):
    owner = await onboard(client, notifier, test_data.actor("owner"))
    staff_payload = test_data.actor("staff")
    staff = await onboard(client, notifier, staff_payload)
    created = await client.post("/roles", json={"name": "Warehouse"}, headers=owner["headers"])

    changed = await client.patch(
        f"/users/{staff['id']}/role",
        json={"roleId": created.json()["role"]["id"]},
        headers=owner["headers"],
    )
    assert changed.json()["message"] == (
        "User role updated successfully, permissions unchanged for custom role"
    )

    body = await login(client, staff_payload["email"], staff_payload["password"])
    assert body["user"]["role"] == "WAREHOUSE"
    assert len(body["permissions"]) == len(staff["login"]["permissions"])


@pytest.mark.asyncio
async def test_cached_and_reloaded_permissions_match(client: AsyncClient, notifier, cache, test_data):
    """Cache and persistence converge

    Given a customer promoted to ADMIN and then granted Media access
    When the permission list is read from the cache and again after the entry is evicted
    Then both reads return the same list in the same order
    """
    owner = await onboard(client, notifier, test_data.actor("owner"))
    staff = await onboard(client, notifier, test_data.actor("staff"))
    created = await client.post("/roles", json={"name": "admin"}, headers=owner["headers"])
    url = f"/users/{staff['id']}/permissions"

    async def hit_then_miss():
        hit = await client.get(url, headers=owner["headers"])
        await cache.delete(permissions_key(staff["id"]))
        miss = await client.get(url, headers=owner["headers"])
        assert hit.status_code == miss.status_code == 200
        return hit.json()["permissions"], miss.json()["permissions"]

    await client.patch(
        f"/users/{staff['id']}/role",
        json={"roleId": created.json()["role"]["id"]},
        headers=owner["headers"],
    )
    hit, miss = await hit_then_miss()
    assert hit == miss
    assert hit[0]["name"] == "User"

    await client.put(
        url,
        json={"permissions": [{"name": "Media", "can_read": True}]},
        headers=owner["headers"],
    )
    hit, miss = await hit_then_miss()
    assert hit == miss
    assert hit[-1]["name"] == "Media"
