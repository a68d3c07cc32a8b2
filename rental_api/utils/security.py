from flask_jwt_extended import create_access_token, get_jwt, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException, NoAuthorizationError
from jwt.exceptions import PyJWTError
from werkzeug.security import check_password_hash, generate_password_hash

from rental_api.exceptions import AuthenticationError
from rental_api.models.user import Caller
from rental_api.utils.constants import Role


def generate_hash(password: str) -> str:
    return generate_password_hash(password)


def check_hash(password: str, hashed: str) -> bool:
    try:
        return check_password_hash(hashed, password)
    except (TypeError, ValueError):
        return False


def issue_token(user_id: int, role: Role) -> str:
    """Signed token carrying {sub: id, role, exp}. Needs an app context."""
    return create_access_token(identity=str(user_id), additional_claims={"role": role.value})


def verify_caller() -> Caller:
    """
    Verify the bearer token of the current request and return its claims as a
    Caller. Any failure (missing header, bad signature, expiry, unknown role)
    is an AuthenticationError.
    """
    try:
        verify_jwt_in_request()
        claims = get_jwt()
    except NoAuthorizationError as exc:
        raise AuthenticationError("Authentication required") from exc
    except (JWTExtendedException, PyJWTError) as exc:
        raise AuthenticationError("Invalid or expired token") from exc

    try:
        return Caller(id=int(claims["sub"]), role=Role(claims["role"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid or expired token") from exc
