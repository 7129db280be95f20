from types import SimpleNamespace

import pytest

from backend.auth import jwt_handler
from backend.auth.dependencies import AuthContext, get_current_identity, require_roles
from backend.core.errors import AuthorizationFailure
from backend.models.user import Role


def test_require_roles_allows_members() -> None:
    check = require_roles(Role.instructor, Role.admin)
    identity = AuthContext(user_id=1, role='admin')

    assert check(identity=identity) is identity


def test_require_roles_rejects_other_roles() -> None:
    check = require_roles(Role.admin)

    with pytest.raises(AuthorizationFailure) as exception_info:
        check(identity=AuthContext(user_id=1, role='student'))

    assert exception_info.value.status_code == 403


def test_gate_falls_back_to_access_cookie(settings) -> None:
    token = jwt_handler.create_access_token(5, 'student', settings)
    request = SimpleNamespace(cookies={'accessToken': token})

    identity = get_current_identity(request, credentials=None, settings=settings)

    assert identity == AuthContext(user_id=5, role='student')
