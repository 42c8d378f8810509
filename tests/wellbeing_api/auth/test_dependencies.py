import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from wellbeing_api.auth import jwt_handler
from wellbeing_api.auth.dependencies import CurrentUser, get_current_user, require_manager, require_student
from wellbeing_api.core.errors import ForbiddenError
from wellbeing_api.routes import auth_routes


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_get_current_user_reads_subject_and_role() -> None:
    token = jwt_handler.create_access_token(subject='S1', role='Student', email='s1@example.edu')

    user = get_current_user(_credentials(token))

    assert user == CurrentUser(id='S1', role='student', email='s1@example.edu')
    assert user.is_student
    assert not user.is_professional


def test_get_current_user_rejects_garbage_token() -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(_credentials('not-a-jwt'))

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_expired_token() -> None:
    token = jwt_handler.create_access_token(subject='S1', role='student', expires_minutes=-5)

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(_credentials(token))

    assert exception_info.value.status_code == 401


def test_get_current_user_rejects_unknown_role() -> None:
    token = jwt_handler.create_access_token(subject='S1', role='superuser')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(_credentials(token))

    assert exception_info.value.detail == 'Invalid token role'


def test_professional_manages_only_own_calendar() -> None:
    mentor = CurrentUser(id='M1', role='mentor')
    admin = CurrentUser(id='A1', role='admin')
    volunteer = CurrentUser(id='M1', role='volunteer')

    assert mentor.can_manage('M1')
    assert not mentor.can_manage('M2')
    assert admin.can_manage('M2')
    assert not volunteer.can_manage('M1')


def test_role_guards_raise_forbidden() -> None:
    with pytest.raises(ForbiddenError):
        require_student(CurrentUser(id='M1', role='mentor'), 'book sessions')

    with pytest.raises(ForbiddenError) as exception_info:
        require_manager(CurrentUser(id='S1', role='student'), 'M1', 'block appointment times')

    assert exception_info.value.detail == 'Only the professional or an admin can block appointment times.'


def test_me_returns_identity_claims() -> None:
    user = CurrentUser(id='M1', role='mentor', email='m1@example.edu')

    assert auth_routes.me(current_user=user) == {
        'id': 'M1',
        'email': 'm1@example.edu',
        'role': 'mentor',
        'is_professional': True,
    }
