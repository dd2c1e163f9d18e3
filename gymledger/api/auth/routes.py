"""
Authentication routes for staff accounts.
"""
from flask import request
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    get_jwt,
    get_jwt_identity,
    jwt_required,
)
from flask_restx import Resource, fields
from sqlalchemy.exc import IntegrityError

from gymledger import db
from gymledger.models.user import User

from . import auth_ns

register_model = auth_ns.model('StaffRegistration', {
    'username': fields.String(required=True, description='Staff username'),
    'email': fields.String(required=True, description='Staff email address'),
    'password': fields.String(required=True, description='Staff password')
})

login_model = auth_ns.model('StaffLogin', {
    'username': fields.String(required=True, description='Staff username or email'),
    'password': fields.String(required=True, description='Staff password')
})

token_model = auth_ns.model('TokenResponse', {
    'access_token': fields.String(description='JWT access token'),
    'refresh_token': fields.String(description='JWT refresh token'),
    'user_id': fields.Integer(description='Staff identifier'),
    'username': fields.String(description='Staff username')
})

user_model = auth_ns.model('Staff', {
    'id': fields.Integer(description='Staff identifier'),
    'username': fields.String(description='Staff username'),
    'email': fields.String(description='Staff email address'),
    'is_admin': fields.Boolean(description='Admin privileges'),
    'created_at': fields.DateTime(description='Creation timestamp'),
})

refresh_token_model = auth_ns.model('RefreshToken', {
    'access_token': fields.String(description='New JWT access token')
})


def _claims_for(user):
    return {'is_admin': bool(user.is_admin)}


@auth_ns.route('/register')
class StaffRegistration(Resource):
    """
    Staff registration endpoint.
    """
    @auth_ns.doc('register_staff')
    @auth_ns.expect(register_model)
    @auth_ns.response(201, 'Staff account created', user_model)
    @auth_ns.response(400, 'Validation error')
    @auth_ns.response(409, 'Staff account already exists')
    def post(self):
        """
        Register a new staff account.
        """
        data = request.json or {}

        if not all(k in data for k in ('username', 'email', 'password')):
            return {'message': 'Missing required fields'}, 400

        if '@' not in data['email']:
            return {'message': 'Invalid email format'}, 400

        if len(data['password']) < 6:
            return {'message': 'Password must be at least 6 characters long'}, 400

        try:
            user = User(
                username=data['username'],
                email=data['email'],
                password=data['password']
            )
            db.session.add(user)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return {'message': 'Username or email already exists'}, 409

        return {
            'id': user.id,
            'username': user.username,
            'email': user.email,
            'is_admin': user.is_admin,
            'created_at': user.created_at.isoformat(),
        }, 201


@auth_ns.route('/login')
class StaffLogin(Resource):
    """
    Staff login endpoint.
    """
    @auth_ns.doc('login_staff')
    @auth_ns.expect(login_model)
    @auth_ns.response(200, 'Login successful', token_model)
    @auth_ns.response(400, 'Validation error')
    @auth_ns.response(401, 'Invalid credentials')
    def post(self):
        """
        Authenticate a staff member and generate JWT tokens.
        """
        data = request.json or {}

        if not all(k in data for k in ('username', 'password')):
            return {'message': 'Missing required fields'}, 400

        user = User.query.filter(
            (User.username == data['username']) | (User.email == data['username'])
        ).first()

        if not user or not user.check_password(data['password']):
            return {'message': 'Invalid username/email or password'}, 401

        claims = _claims_for(user)
        return {
            'access_token': create_access_token(identity=str(user.id), additional_claims=claims),
            'refresh_token': create_refresh_token(identity=str(user.id), additional_claims=claims),
            'user_id': user.id,
            'username': user.username
        }, 200


@auth_ns.route('/refresh')
class TokenRefresh(Resource):
    """
    Token refresh endpoint.
    """
    @auth_ns.doc('refresh_token')
    @auth_ns.response(200, 'Token refresh successful', refresh_token_model)
    @auth_ns.response(401, 'Invalid refresh token')
    @jwt_required(refresh=True)
    def post(self):
        """
        Generate a new access token using a refresh token.
        """
        claims = {'is_admin': get_jwt().get('is_admin', False)}
        return {
            'access_token': create_access_token(identity=str(get_jwt_identity()), additional_claims=claims)
        }, 200
