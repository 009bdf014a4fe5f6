# phonerelay/api/routes/auth.py
# -*- coding: utf-8 -*-
"""
Authentication API Routes
Provides login/logout endpoints.
"""
from flask import Blueprint, request, jsonify, current_app, abort
from flask_login import login_user, logout_user, login_required, current_user
from marshmallow import ValidationError

from phonerelay.services.auth_service import AuthService
from phonerelay.utils.exceptions import AuthenticationError
from phonerelay.api.schemas.user_schemas import LoginSchema, UserSchema

# Create Blueprint
auth_bp = Blueprint('auth_api', __name__)

# Instantiate schemas
login_request_schema = LoginSchema()
user_response_schema = UserSchema()


@auth_bp.route('/login', methods=['POST'])
def login():
    """User Login Endpoint."""
    json_data = request.get_json(silent=True)
    if not json_data:
        abort(400, description="No input data provided.")

    try:
        data = login_request_schema.load(json_data)
    except ValidationError as err:
        return jsonify({"errors": err.messages}), 400

    username = data['username']
    try:
        user = AuthService.authenticate_user(username, data['password'])
        login_user(user, remember=True)
        current_app.logger.info(f"User '{username}' (ID: {user.id}) logged in successfully.")
        return jsonify({
            "message": "Login successful.",
            "user": user_response_schema.dump(user)
        }), 200
    except AuthenticationError as e:
        current_app.logger.warning(f"Failed login attempt for username '{username}': {e}")
        abort(401, description=str(e))
    except Exception as e:
        current_app.logger.exception(f"Unexpected error during login for username '{username}': {e}")
        abort(500, description="An unexpected error occurred during login.")


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """User Logout Endpoint."""
    user_id = current_user.id
    username = current_user.username
    logout_user()
    current_app.logger.info(f"User '{username}' (ID: {user_id}) logged out.")
    return jsonify({"message": "Logout successful."}), 200


@auth_bp.route('/status', methods=['GET'])
@login_required
def status():
    """Check Login Status Endpoint."""
    return jsonify({
        "message": "User is logged in.",
        "logged_in": True,
        "user": user_response_schema.dump(current_user)
    }), 200
