import pytest

from loginlab import create_app
from loginlab.accounts import AccountStore
from loginlab.throttle import AttemptThrottle

ADMIN_USERNAME = "root"
ADMIN_PASSWORD = "hunter2"


@pytest.fixture
def accounts():
    # cost 4 is the bcrypt minimum; keeps the suite fast
    return AccountStore(rounds=4, reserved=[ADMIN_USERNAME])


@pytest.fixture
def throttle():
    return AttemptThrottle(max_attempts=5, lock_seconds=120)


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "BCRYPT_LOG_ROUNDS": 4,
        "ADMIN_USERNAME": ADMIN_USERNAME,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def lab(app):
    return app.extensions["loginlab"]
