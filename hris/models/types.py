from sqlalchemy.types import TypeDecorator, String

from hris.core.security import encrypt_data, decrypt_data


class EncryptedString(TypeDecorator):
    """String column transparently encrypted with the application Fernet key."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return encrypt_data(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return decrypt_data(value)
