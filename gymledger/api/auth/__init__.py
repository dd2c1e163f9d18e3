"""
Authentication namespace for staff accounts.
"""
from flask_restx import Namespace

auth_ns = Namespace(
    'auth',
    description='Staff authentication operations'
)

from . import routes  # noqa: E402,F401
