"""Role-based access policy applied at the routing layer.

Routes declare the capability they need with ``capability_required``;
no handler compares roles itself.
"""
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import g, session

from tuition.errors import Forbidden, Unauthorized

# --- Role-based capability table ---
CAPABILITIES = {
    'conflict_check': {
        'admin':   ['ADMIN'],
        'teacher': ['ADMIN', 'TEACHER'],
    },
    'schedule': {
        'read':    ['ADMIN', 'TEACHER', 'STUDENT', 'PARENT'],
        'create':  ['ADMIN'],
        'update':  ['ADMIN'],
        'delete':  ['ADMIN'],
        'replace': ['ADMIN', 'TEACHER'],
    },
    'room': {
        'read':    ['ADMIN', 'TEACHER'],
        'create':  ['ADMIN'],
    },
    'timeslot': {
        'read':    ['ADMIN'],
        'create':  ['ADMIN'],
    },
    'workload': {
        'read':    ['ADMIN'],
    },
}


@dataclass
class Identity:
    user_id: Optional[int]
    username: str
    role: str


def current_identity():
    """Caller identity from the session cookie, or None when logged out."""
    if not session.get('logged_in'):
        return None
    role = (session.get('role') or '').upper()
    return Identity(user_id=session.get('user_id'), username=session.get('user') or '', role=role)


class CapabilityPolicy:
    def __init__(self, capabilities):
        self.capabilities = capabilities

    def allowed_roles(self, resource, action):
        return self.capabilities.get(resource, {}).get(action, [])

    def authorize(self, identity, resource, action):
        if identity is None:
            raise Unauthorized()
        if identity.role not in self.allowed_roles(resource, action):
            raise Forbidden()
        return identity

    def ensure_owns_class(self, identity, klass):
        """Teachers may only change classes they teach."""
        if identity.role == 'ADMIN':
            return
        teacher = klass.teacher
        if identity.role == 'TEACHER' and teacher is not None and teacher.user_id == identity.user_id:
            return
        raise Forbidden('You do not have permission to modify this class')


policy = CapabilityPolicy(CAPABILITIES)


def capability_required(resource: str, action: str):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.actor = policy.authorize(current_identity(), resource, action)
            return fn(*args, **kwargs)
        return wrapper
    return decorator
