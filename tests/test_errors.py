from fastapi.testclient import TestClient
from inkshare.main import app

client = TestClient(app)


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert "code" in data
    assert data["code"] == "HTTP_ERROR"


def test_validation_error_structure():
    # A temporary route with a typed body
    from pydantic import BaseModel

    class Item(BaseModel):
        name: str
        price: int

    @app.post("/test-validation")
    def create_item(item: Item):
        return item

    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data
    assert len(data["details"]) > 0
    assert data["details"][0]["loc"][-1] == "price"


def test_custom_exception():
    from inkshare.core.exceptions import RecipientNotFound

    @app.get("/test-custom-error")
    def trigger_custom_error():
        raise RecipientNotFound()

    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "RECIPIENT_NOT_FOUND"
    assert data["error"] == "User was not found"
