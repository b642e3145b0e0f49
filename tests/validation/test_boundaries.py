"""Tests for request-boundary validation and the HTTP rendering of failures."""

from __future__ import annotations

import pydantic
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fieldspec.dto import PageOptionsDto
from fieldspec.errors.handlers import register_error_handlers
from fieldspec.validation import (
    BoundaryValidator,
    Dto,
    ValidationError,
    ValidationMode,
    email_field,
    enum_field,
    parse_batch,
    parse_ingress,
    validated_body,
    validated_query,
)
from tests.conftest import CreateProductDto, valid_product


def _unloaded_registry() -> type:
    raise LookupError("status registry not loaded")


class BrokenEnumDto(Dto):
    status = enum_field(_unloaded_registry)


class SignupModel(pydantic.BaseModel):
    email: str = pydantic.Field()


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_error_handlers(app)

    @app.post("/products")
    async def create_product(body: CreateProductDto = validated_body(CreateProductDto)) -> dict:
        return body.to_dict()

    @app.post("/products/strict")
    async def create_product_strict(
        body: CreateProductDto = validated_body(CreateProductDto, mode=ValidationMode.COLLECT_ALL),
    ) -> dict:
        return body.to_dict()

    @app.get("/items")
    async def list_items(options: PageOptionsDto = validated_query(PageOptionsDto)) -> dict:
        return {"order": options.order, "page": options.page, "take": options.take, "skip": options.skip,
            "q": options.q}

    @app.post("/broken")
    async def broken(body: BrokenEnumDto = validated_body(BrokenEnumDto)) -> dict:
        return body.to_dict()

    @app.post("/signup")
    async def signup(body: SignupModel) -> dict:
        return body.model_dump()

    return TestClient(app)


class TestBoundaryValidator:
    def test_ok(self) -> None:
        result = BoundaryValidator(CreateProductDto).parse_ingress(valid_product())
        assert result.is_ok()
        assert result.unwrap().name == "Lamp"

    def test_err(self) -> None:
        result = parse_ingress(CreateProductDto, valid_product(price=-1))
        assert result.is_err()
        assert result.unwrap_err().first_error.rule == "min"

    def test_batch(self) -> None:
        assert len(parse_batch(CreateProductDto, [valid_product(), valid_product()]).unwrap()) == 2
        result = parse_batch(CreateProductDto, [valid_product(), {}, valid_product(name="")])
        assert [index for index, _ in result.unwrap_err()] == [1, 2]

    def test_batch_error_cap(self) -> None:
        result = parse_batch(CreateProductDto, [{}, {}, {}], max_errors=2)
        assert len(result.unwrap_err()) == 2


class TestValidatedBody:
    def test_valid_body(self, client: TestClient) -> None:
        response = client.post("/products", json=valid_product(name=" Lamp "))
        assert response.status_code == 200
        assert response.json()["name"] == "Lamp"
        assert response.json()["price"] == 12.5

    def test_rejected_body(self, client: TestClient) -> None:
        response = client.post("/products", json=valid_product(price="free"))
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["message"] == [{
            "field": "price",
            "rule": "coerce_number",
            "message": "price: Cannot coerce 'free' to number",
            "value": "free",
            "coercion": True,
        }]

    def test_collect_all_route(self, client: TestClient) -> None:
        response = client.post("/products/strict", json={"price": "free"})
        assert response.status_code == 422
        assert [f["field"] for f in response.json()["message"]] == ["name", "price", "titles"]

    def test_nested_failure(self, client: TestClient) -> None:
        titles = [{"language_code": "en_US", "title": "Lamp"}, {"language_code": "en_US"}]
        response = client.post("/products", json=valid_product(titles=titles))
        failure = response.json()["message"][0]
        assert failure["field"] == "titles[1]"
        assert failure["rule"] == "nested"
        assert failure["children"][0]["field"] == "title"

    def test_password_is_redacted(self, client: TestClient) -> None:
        response = client.post("/products", json=valid_product(password="bad pass"))
        assert response.status_code == 422
        assert response.json()["message"][0]["value"] == "[REDACTED]"
        assert "bad pass" not in response.text

    def test_invalid_json(self, client: TestClient) -> None:
        response = client.post("/products", content=b"{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 422
        failure = response.json()["message"][0]
        assert (failure["field"], failure["rule"]) == ("$", "json")

    def test_lazy_accessor_failure_is_a_server_error(self, client: TestClient) -> None:
        response = client.post("/broken", json={"status": "active"})
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "E9010_CONFIGURATION_INVALID"


class TestValidatedQuery:
    def test_defaults(self, client: TestClient) -> None:
        response = client.get("/items")
        assert response.status_code == 200
        assert response.json() == {"order": "ASC", "page": 1, "take": 10, "skip": 0, "q": None}

    def test_coerced_values(self, client: TestClient) -> None:
        response = client.get("/items", params={"order": "DESC", "page": "3", "take": "20", "q": " lamp "})
        assert response.json() == {"order": "DESC", "page": 3, "take": 20, "skip": 40, "q": "lamp"}

    def test_take_is_capped(self, client: TestClient) -> None:
        response = client.get("/items", params={"take": "51"})
        assert response.status_code == 422
        failure = response.json()["message"][0]
        assert (failure["field"], failure["rule"], failure["value"]) == ("take", "max", 51)

    def test_order_must_be_known(self, client: TestClient) -> None:
        response = client.get("/items", params={"order": "sideways"})
        assert response.json()["message"][0]["rule"] == "is_enum"


class TestRequestValidationHandler:
    def test_pydantic_failures_share_the_shape(self, client: TestClient) -> None:
        response = client.post("/signup", json={})
        assert response.status_code == 422
        failure = response.json()["message"][0]
        assert failure["field"] == "body.email"
        assert failure["rule"] == "missing"

    def test_validation_error_type(self) -> None:
        with pytest.raises(ValidationError):
            CreateProductDto.parse({})


class TestEmailRoundTrip:
    def test_email_field_in_dto(self) -> None:
        class ContactDto(Dto):
            email = email_field()

        assert ContactDto.parse({"email": " A@B.IO "}).email == "a@b.io"
