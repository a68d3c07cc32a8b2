from functools import wraps

from flask import g

from rental_api.exceptions import AuthorizationError
from rental_api.services.common import to_int
from rental_api.services.policy import Operation, Policy, ResourceKind, ResourceRef
from rental_api.utils.context import get_store, json_body
from rental_api.utils.security import verify_caller


def current_caller():
    """Verified caller of this request; the token is checked once per request."""
    if "caller" not in g:
        g.caller = verify_caller()
    return g.caller


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        current_caller()
        return fn(*args, **kwargs)

    return wrapper


def role_required(*roles):
    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if current_caller().role not in roles:
                raise AuthorizationError("Insufficient permission")
            return fn(*args, **kwargs)

        return wrapper

    return deco


def authorize(kind: ResourceKind, op: Operation, id_arg: str | None = None, body_field: str | None = None):
    """
    Run the ownership policy before the view.
    `id_arg` names the path parameter holding the target id (converted to int
    in place); `body_field` names the JSON field compared with the caller on create.
    """
    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            caller = current_caller()
            target_id = None
            if id_arg:
                target_id = to_int(kwargs[id_arg], f"{kind.value} ID")
                kwargs[id_arg] = target_id
            body_value = json_body().get(body_field) if body_field else None

            ref = ResourceRef(kind=kind, id=target_id, body_customer_id=body_value)
            Policy(get_store()).decide(caller, ref, op).enforce()
            return fn(*args, **kwargs)

        return wrapper

    return deco
