"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks. The work
factor comes from PROJECTHUB_BCRYPT_ROUNDS (default 10) and is passed
in by whoever builds the hasher.
"""

from functools import cached_property

import bcrypt

from projecthub.config import DEFAULT_BCRYPT_ROUNDS

# bcrypt only looks at the first 72 bytes of the password.
_MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted one-way hash + verify."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password with bcrypt.

        Learn: bcrypt includes a random salt automatically and produces
        hashes starting with "$2b$", so hashing the same password twice
        gives two different strings.
        """
        pw_bytes = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash.

        Malformed hashes return False instead of raising.
        """
        try:
            pw_bytes = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
            hash_bytes = password_hash.encode("utf-8")
            return bcrypt.checkpw(pw_bytes, hash_bytes)
        except (ValueError, TypeError, AttributeError):
            return False

    @cached_property
    def _decoy_hash(self) -> str:
        return self.hash("projecthub-decoy-password")

    def verify_decoy(self, password: str) -> bool:
        """Spend the same bcrypt work as verify() and always return False.

        Learn: Used when the username is unknown, so a failed login takes
        about as long whether or not the account exists.
        """
        self.verify(password, self._decoy_hash)
        return False

