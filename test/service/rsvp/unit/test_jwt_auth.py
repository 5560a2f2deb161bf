import jwt
import pytest

from src.platform.exception.exceptions import InvalidTokenError, UnauthenticatedError
from src.service.rsvp.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


@pytest.mark.unit
class TestJwtAuth:
    @pytest.fixture
    def jwt_auth(self) -> JwtAuth:
        return JwtAuth()

    def test_round_trip_user_id(self, jwt_auth):
        token = jwt_auth.create_jwt_token(user_id=42)

        assert jwt_auth.get_user_id_from_jwt(token) == 42

    def test_missing_token(self, jwt_auth):
        with pytest.raises(UnauthenticatedError):
            jwt_auth.get_user_id_from_jwt(None)

    def test_token_signed_with_other_secret(self, jwt_auth):
        token = jwt.encode({'user_id': 42}, 'some-other-secret', algorithm=jwt_auth.algorithm)

        with pytest.raises(InvalidTokenError):
            jwt_auth.get_user_id_from_jwt(token)

    @pytest.mark.parametrize('claims', [{}, {'sub': 'abc'}, {'user_id': 0}])
    def test_token_without_usable_user_id(self, jwt_auth, claims):
        token = jwt.encode(claims, jwt_auth.secret, algorithm=jwt_auth.algorithm)

        with pytest.raises(InvalidTokenError):
            jwt_auth.get_user_id_from_jwt(token)
