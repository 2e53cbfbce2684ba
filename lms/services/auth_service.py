from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token

from lms.errors import AlreadyExists, ValidationError
from lms.models.user import ROLES, User
from lms.repositories.user_repo import UserRepo


class InvalidCredentials(Exception):
    pass


class AuthService:
    @staticmethod
    def register(username: str, email: str, password: str, role: str = "student"):
        if not username or not email or not password:
            raise ValidationError("username/email/password are required")
        if role not in ROLES:
            raise ValidationError(f"Unknown role: {role}")
        if UserRepo.get_by_username(username) or UserRepo.get_by_email(email):
            raise AlreadyExists("Username or e-mail already registered")

        user = User(
            username=username,
            email=email,
            password_hash=generate_password_hash(password),
            role=role
        )
        UserRepo.create(user)
        return user

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "username": user.username}
        )

    @staticmethod
    def login(username: str, password: str):
        user = UserRepo.get_by_username(username)
        if not user or not check_password_hash(user.password_hash, password):
            raise InvalidCredentials("Wrong username or password")
        return AuthService.issue_token(user), user
