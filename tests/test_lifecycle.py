import pytest

from app.core.exceptions import NotFoundError, ValidationError


# =============================================================================
# CLIENTS
# =============================================================================

async def test_add_client_then_list(service):
    client_id = await service.add_client("Jane Doe", "350 Fifth Avenue")

    clients = await service.get_clients()
    assert len(clients) == 1
    client = clients[0]
    assert client.id == client_id
    assert client.name == "Jane Doe"
    assert client.address == "350 Fifth Avenue"
    assert client.created_date > 0
    assert client.updated_at is None


async def test_add_client_accepts_empty_strings(service):
    client_id = await service.add_client("", "")
    client = await service.get_client(client_id)
    assert client.name == ""
    assert client.address == ""


async def test_get_clients_empty(service):
    with pytest.raises(NotFoundError, match="No clients found"):
        await service.get_clients()


async def test_update_client(service, client_id):
    created = (await service.get_client(client_id)).created_date

    assert await service.update_client(client_id, "Janet", "1 Main St") == client_id

    client = await service.get_client(client_id)
    assert client.name == "Janet"
    assert client.address == "1 Main St"
    assert client.created_date == created
    assert client.updated_at > created


async def test_update_missing_client_creates_nothing(service):
    with pytest.raises(NotFoundError, match="Client not found"):
        await service.update_client("missing", "Ghost", "Nowhere")

    with pytest.raises(NotFoundError, match="No clients found"):
        await service.get_clients()


async def test_delete_client(service, client_id):
    message = await service.delete_client(client_id)
    assert message == f"Client with ID: {client_id} removed successfully"

    with pytest.raises(NotFoundError, match="Client not found"):
        await service.delete_client(client_id)


# =============================================================================
# DRIVERS
# =============================================================================

async def test_driver_lifecycle(service):
    driver_id = await service.add_driver("Sam", "555-0100")

    drivers = await service.get_drivers()
    assert [d.id for d in drivers] == [driver_id]
    assert drivers[0].updated_at is None

    await service.update_driver(driver_id, "Samuel", "555-0199")
    driver = await service.get_driver(driver_id)
    assert (driver.name, driver.contact) == ("Samuel", "555-0199")
    assert driver.updated_at is not None

    assert await service.delete_driver(driver_id) == (
        f"Driver with ID: {driver_id} removed successfully"
    )
    with pytest.raises(NotFoundError, match="No drivers found"):
        await service.get_drivers()


async def test_update_missing_driver(service):
    with pytest.raises(NotFoundError, match="Driver not found"):
        await service.update_driver("missing", "a", "b")


# =============================================================================
# DELIVERY ADDRESSES
# =============================================================================

async def test_delivery_addresses_filtered_by_client(service, client_id):
    other = await service.add_client("Other", "Elsewhere")
    mine = await service.add_delivery_address(client_id, "1 Main St", "New York", "10001")
    await service.add_delivery_address(other, "2 Side St", "Boston", "02108")

    addresses = await service.get_delivery_addresses(client_id)
    assert [a.id for a in addresses] == [mine]
    assert addresses[0].postal_code == "10001"


async def test_no_delivery_addresses_for_client(service, client_id):
    with pytest.raises(NotFoundError, match="No delivery addresses found for the client"):
        await service.get_delivery_addresses(client_id)


@pytest.mark.parametrize(
    "street, city, postal_code",
    [("", "New York", "10001"), ("1 Main St", "", "10001"), ("1 Main St", "New York", "")],
)
async def test_add_delivery_address_requires_fields(service, client_id, street, city, postal_code):
    with pytest.raises(ValidationError, match="street, city, and postal code"):
        await service.add_delivery_address(client_id, street, city, postal_code)

    with pytest.raises(NotFoundError):
        await service.get_delivery_addresses(client_id)


async def test_update_delivery_address(service, client_id):
    address_id = await service.add_delivery_address(client_id, "1 Main St", "New York", "10001")

    await service.update_delivery_address(address_id, "9 Park Ave", "New York", "10016")

    address = await service.get_delivery_address(address_id)
    assert address.street == "9 Park Ave"
    assert address.postal_code == "10016"
    assert address.client_id == client_id
    assert address.updated_at is not None


async def test_update_delivery_address_checks_existence_first(service):
    with pytest.raises(NotFoundError, match="Delivery address not found"):
        await service.update_delivery_address("missing", "", "", "")


async def test_update_delivery_address_validates(service, client_id):
    address_id = await service.add_delivery_address(client_id, "1 Main St", "New York", "10001")

    with pytest.raises(ValidationError):
        await service.update_delivery_address(address_id, "", "New York", "10001")

    address = await service.get_delivery_address(address_id)
    assert address.street == "1 Main St"
    assert address.updated_at is None


async def test_delete_delivery_address(service, client_id):
    address_id = await service.add_delivery_address(client_id, "1 Main St", "New York", "10001")
    assert "removed successfully" in await service.delete_delivery_address(address_id)

    with pytest.raises(NotFoundError, match="Delivery address not found"):
        await service.delete_delivery_address(address_id)


# =============================================================================
# REVIEWS
# =============================================================================

async def test_review_lifecycle(service):
    review_id = await service.add_review("order-1", 5, "Great")

    reviews = await service.get_reviews()
    assert reviews[0].id == review_id
    assert reviews[0].rating == 5

    await service.update_review(review_id, 3, "")
    review = await service.get_review(review_id)
    assert (review.rating, review.comment) == (3, "")

    await service.delete_review(review_id)
    with pytest.raises(NotFoundError, match="No reviews found"):
        await service.get_reviews()


async def test_review_for_unknown_order_is_accepted(service):
    review_id = await service.add_review("no-such-order", 1, "")
    assert (await service.get_review(review_id)).order_id == "no-such-order"


async def test_update_missing_review(service):
    with pytest.raises(NotFoundError, match="Review not found"):
        await service.update_review("missing", 4, "ok")


async def test_long_free_form_values_are_stored(service):
    long_ref = "r" * 120
    address_id = await service.add_delivery_address(
        long_ref, "350 Fifth Avenue", "c" * 150, "9" * 40
    )
    review_id = await service.add_review(long_ref, 5, "")

    address = await service.get_delivery_address(address_id)
    assert address.client_id == long_ref
    assert len(address.postal_code) == 40
    assert (await service.get_review(review_id)).order_id == long_ref
