import os
import tempfile
from decimal import Decimal

import pytest

# Configure before the storefront package reads its settings.
_tmpdir = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'storefront.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PAYMENT_GATEWAY"] = "fake"
os.environ["FRONTEND_URL"] = "http://shop.test"

from fastapi.testclient import TestClient  # noqa: E402

from storefront import auth, db, models  # noqa: E402
from storefront.deps import get_gateway  # noqa: E402
from storefront.gateway import FakeGateway  # noqa: E402
from storefront.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db():
    db.drop_db()
    db.init_db()
    yield


@pytest.fixture()
def session():
    s = db.SessionLocal()
    yield s
    s.close()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def client(gateway):
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(session, email="jane@example.com", name="Jane", password="s3cret-pass"):
    user = models.User(name=name, email=email, password_hash=auth.hash_password(password))
    session.add(user)
    session.commit()
    return user


@pytest.fixture()
def user(session):
    return make_user(session)


@pytest.fixture()
def other_user(session):
    return make_user(session, email="bob@example.com", name="Bob")


@pytest.fixture()
def headers(user):
    return {"token": auth.issue_session(user.id)}


@pytest.fixture()
def menu(session):
    """Two items: pizza at 10.00 and salad at 5.00."""
    pizza = models.FoodItem(name="Pizza", price=Decimal("10.00"), category="Pizza", image="pizza.png")
    salad = models.FoodItem(name="Salad", price=Decimal("5.00"), category="Salad", image="salad.png")
    session.add_all([pizza, salad])
    session.commit()
    return {"pizza": pizza, "salad": salad}


ADDRESS = {
    "first_name": "Jane",
    "last_name": "Doe",
    "email": "jane@example.com",
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zipcode": "62701",
    "country": "US",
    "phone": "555-0100",
}


@pytest.fixture()
def address():
    return dict(ADDRESS)
