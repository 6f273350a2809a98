import json

import mongomock
import pytest
from fastapi.testclient import TestClient

from moviestream.auth import generate_token
from moviestream.config import Settings
from moviestream.main import create_app
from moviestream.models import Comment, Movie, Review, User


class FakeProcessor:
    """In-memory stand-in for the Stripe-backed PaymentProcessor."""

    def __init__(self):
        self.customers = []
        self.subscriptions = {}
        self.invoices = {}
        self.payment_intents = {}

    def create_customer(self, email, name):
        customer = {"id": f"cus_{len(self.customers) + 1}", "email": email, "name": name}
        self.customers.append(customer)
        return customer

    def create_subscription(self, customer_id, price_id):
        sub_id = f"sub_{len(self.subscriptions) + 1}"
        subscription = {
            "id": sub_id,
            "customer": customer_id,
            "status": "incomplete",
            "items": {"data": [{"price": {"id": price_id}}]},
            "latest_invoice": {
                "id": f"in_{sub_id}",
                "payment_intent": {"id": f"pi_{sub_id}", "client_secret": f"pi_{sub_id}_secret"},
            },
        }
        self.subscriptions[sub_id] = subscription
        return subscription

    def retrieve_subscription(self, subscription_id):
        return self.subscriptions[subscription_id]

    def retrieve_invoice(self, invoice_id):
        return self.invoices[invoice_id]

    def retrieve_payment_intent(self, payment_intent_id):
        return self.payment_intents[payment_intent_id]

    def construct_event(self, payload, signature):
        if signature != "valid-signature":
            raise ValueError("No signatures found matching the expected signature for payload")
        return json.loads(payload)


@pytest.fixture
def settings():
    return Settings(
        mongo_uri="mongodb://localhost:27017",
        jwt_secret="test-secret",
        mongo_db="moviestream_test",
        google_client_id="google-client-id",
        cors_origins=["http://localhost:49925"],
        app_env="test",
        page_size=10,
    )


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def client(settings, processor):
    app = create_app(settings, processor=processor, mongo_client_class=mongomock.MongoClient)
    with TestClient(app) as test_client:
        yield test_client
        for document in (Movie, User, Comment, Review):
            document.drop_collection()


@pytest.fixture
def make_user(client):
    def _make(username="viewer", email=None, password="secret123", role="customer", **fields):
        user = User(username=username, email=email or f"{username}@example.com", role=role, **fields)
        if password:
            user.set_password(password)
        user.save()
        return user
    return _make


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        return {"Authorization": f"Bearer {generate_token(user.id, settings)}"}
    return _headers


@pytest.fixture
def make_movie(client):
    def _make(tmdb_id, title=None, genre=("Drama",), type=("movie",), release_date="2020-01-01", **fields):
        movie = Movie(
            tmdbId=tmdb_id,
            title=title or f"Movie {tmdb_id}",
            description=fields.pop("description", f"Description of {tmdb_id}"),
            posterPath=f"/posters/{tmdb_id}.jpg",
            backdropPath=f"/backdrops/{tmdb_id}.jpg",
            videoUrl=f"https://cdn.example.com/{tmdb_id}.m3u8",
            genre=list(genre),
            type=list(type),
            rating=fields.pop("rating", 4.0),
            releaseDate=release_date,
            **fields,
        )
        movie.save()
        return movie
    return _make
