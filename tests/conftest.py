import os

# The inventory service reads its settings at import time
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from jose import jwt


@pytest.fixture(autouse=True)
def inventory_db():
    """Fresh canonical store for every test."""
    from services.inventory.app import models
    from services.inventory.app.database import engine

    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)
    yield
    models.Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_token():
    from services.inventory.app.config import ALGORITHM, SECRET_KEY

    def _make_token(user_id="user-1", email="operator@example.com", role="user"):
        return jwt.encode({"sub": user_id, "email": email, "role": role}, SECRET_KEY, algorithm=ALGORITHM)

    return _make_token


@pytest.fixture
def auth_token(make_token):
    return make_token()


@pytest.fixture
def inventory_app():
    from services.inventory.app.main import app

    return app
