from flask import Blueprint, request, jsonify, current_app
from bathroom_scheduler.models import User
from bathroom_scheduler.extensions import db
from bathroom_scheduler.utils.decorators import token_required
from werkzeug.security import generate_password_hash, check_password_hash
import jwt
from datetime import datetime, timedelta, timezone

auth_bp = Blueprint('auth', __name__)

def issue_token(user):
    return jwt.encode({
        'user_id': user.id,
        'exp': datetime.now(timezone.utc) + timedelta(hours=current_app.config['TOKEN_EXPIRY_HOURS'])
    }, current_app.config['SECRET_KEY'], algorithm="HS256")

@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'message': 'No input data provided'}), 400

    username = data.get('username')
    password = data.get('password')
    if not username or not password:
        return jsonify({'message': 'Username and password are required'}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({'message': 'Username already exists'}), 400
    if data.get('email') and User.query.filter_by(email=data['email']).first():
        return jsonify({'message': 'Email already exists'}), 400

    user = User(
        username=username,
        email=data.get('email'),
        display_name=data.get('display_name'),
        password_hash=generate_password_hash(password)
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"Registered household member {user.username}")

    return jsonify({'token': issue_token(user), 'user': user.to_dict()}), 201

@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()

    if not user or not user.password_hash or not check_password_hash(user.password_hash, data.get('password') or ''):
        return jsonify({'message': 'Invalid credentials'}), 401

    return jsonify({'token': issue_token(user), 'username': user.username, 'role': user.role})

@auth_bp.route('/me', methods=['GET'])
@token_required
def me(current_user):
    return jsonify(current_user.to_dict())

@auth_bp.route('/users', methods=['GET'])
@token_required
def list_users(current_user):
    users = User.query.order_by(User.username).all()
    return jsonify([u.to_dict() for u in users])
