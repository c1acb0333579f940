"""
api/handlers/factory.py -- Build the auth handlers from Settings at startup.

This is the single place where configuration turns into handler state. The
lifespan in api/main.py calls build_auth_handlers() once; tests call it with
their own Settings and store.
"""

from __future__ import annotations

from dataclasses import dataclass

from api.cors import CorsPolicy
from api.handlers.login import LoginHandler
from api.handlers.registration import RegistrationHandler
from auth.passwords import PasswordHasher
from auth.store import PlayerStore
from auth.tokens import TokenCodec
from core.config import Settings


@dataclass
class AuthHandlers:
    registration: RegistrationHandler
    login: LoginHandler
    codec: TokenCodec


def build_auth_handlers(settings: Settings, store: PlayerStore) -> AuthHandlers:
    origins = settings.allowed_origin_list
    hasher = PasswordHasher(settings.bcrypt_rounds)
    codec = TokenCodec(settings.jwt_secret)
    return AuthHandlers(
        registration=RegistrationHandler(store, hasher, CorsPolicy(origins)),
        login=LoginHandler(
            store,
            hasher,
            codec,
            CorsPolicy(origins, allow_credentials=True),
            secure_cookies=settings.is_production,
        ),
        codec=codec,
    )
