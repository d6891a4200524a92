"""Actor resolution for admin requests.

The login flow (outside this app) stores ``{"id", "email", "role"}`` under
``session["user"]``. Routes resolve it into an :class:`ActorContext`
and pass it explicitly to the services.
"""
import functools
from dataclasses import dataclass

from flask import session, jsonify

SUPER_ADMIN = "super_admin"
ADMIN = "admin"
EDITOR = "editor"
CUSTOMER = "customer"

ROLES = {SUPER_ADMIN, ADMIN, EDITOR, CUSTOMER}
STAFF_ROLES = {SUPER_ADMIN, ADMIN, EDITOR}


@dataclass(frozen=True)
class ActorContext:
    user_id: str
    email: str
    role: str

    @property
    def is_staff(self):
        return self.role in STAFF_ROLES

    @property
    def is_super_admin(self):
        return self.role == SUPER_ADMIN

    @classmethod
    def from_session(cls, data):
        if not isinstance(data, dict):
            return None
        user_id = data.get("id")
        role = data.get("role")
        if not user_id or role not in ROLES:
            return None
        return cls(user_id=str(user_id), email=data.get("email", ""), role=role)


def current_actor():
    """Return the request's actor, or None when nobody is signed in."""
    return ActorContext.from_session(session.get("user"))


def staff_required(view):
    """Reject requests without a staff actor with a 401 JSON body."""

    @functools.wraps(view)
    def wrapped(*args, **kwargs):
        actor = current_actor()
        if actor is None or not actor.is_staff:
            return jsonify({"success": False, "message": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapped
