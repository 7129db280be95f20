from passlib.context import CryptContext

_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password or not password_hash:
        # Burn comparable time so a missing account is not observable.
        _pwd.dummy_verify()
        return False
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        return False
