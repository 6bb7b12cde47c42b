# config.py
import os
import secrets


def _env(name, default):
    return os.environ.get(f"LOGINLAB_{name}", default)


class Config:
    SECRET_KEY = _env("SECRET_KEY", None) or secrets.token_hex(32)

    # Admin account, checked before the account store
    ADMIN_USERNAME = _env("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = _env("ADMIN_PASSWORD", "s3cr3t")

    BCRYPT_LOG_ROUNDS = int(_env("BCRYPT_ROUNDS", 10))   # bcrypt cost factor
    MAX_ATTEMPTS = int(_env("MAX_ATTEMPTS", 5))          # failures before lock
    LOCK_SECONDS = int(_env("LOCK_SECONDS", 120))

    HOST = _env("HOST", "127.0.0.1")
    PORT = int(_env("PORT", 3000))

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
