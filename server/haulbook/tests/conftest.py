import pytest

from haulbook.auth import get_current_user
from haulbook.main import app
from haulbook.models import User


@pytest.fixture(autouse=True)
def override_auth(request):
    if request.node.get_closest_marker("real_auth"):
        yield
        return

    app.dependency_overrides[get_current_user] = lambda: User(
        id=1,
        tenant_id=1,
        email="owner@haulbook.test",
        full_name="Test Owner",
        role="owner",
        is_active=True,
    )
    yield
    app.dependency_overrides.pop(get_current_user, None)
