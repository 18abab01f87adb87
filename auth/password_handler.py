import bcrypt
import os

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt at the configured cost factor.
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, password_hash: str) -> bool:
    """
    Check a password against a stored hash. A malformed hash never matches.
    """
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False
