"""Password hashing helpers built on passlib."""

from passlib.context import CryptContext


class PasswordHasher:
    """Salted one-way hash with a fixed work factor.

    `rounds` is the pbkdf2_sha256 iteration count. Hashes created with
    another count still verify, they are just flagged by `needs_update`.
    """

    def __init__(self, rounds: int):
        self.rounds = rounds
        self._ctx = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=rounds,
            pbkdf2_sha256__min_rounds=rounds,
            pbkdf2_sha256__max_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._ctx.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Check `password` against a stored hash.

        Raises ValueError when the stored value is not a recognised hash.
        """
        return self._ctx.verify(password, password_hash)

    def needs_update(self, password_hash: str) -> bool:
        return self._ctx.needs_update(password_hash)

    def dummy_verify(self) -> bool:
        """Spend the same effort as a real verify; used for unknown users."""
        return self._ctx.dummy_verify()
