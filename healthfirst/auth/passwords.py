import base64
import hashlib

import bcrypt


def _prehash(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes of its input.
    return base64.b64encode(hashlib.sha256(password.encode('utf-8')).digest())


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt()).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_prehash(password), password_hash.encode('utf-8'))
    except ValueError:
        return False
