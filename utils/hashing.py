from passlib.context import CryptContext

from core.context import AppContext
from core.exceptions import CredentialDecodeError


class CredentialHasher:
    """
    argon2id password hashing.

    Every digest embeds its own random salt and cost parameters, so hashing
    the same password twice gives two different strings and older digests keep
    verifying after the cost settings change.
    """

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4):
        self._context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__type="ID",
            argon2__rounds=time_cost,
            argon2__memory_cost=memory_cost,
            argon2__parallelism=parallelism,
        )

    @classmethod
    def from_context(cls, ctx: AppContext) -> "CredentialHasher":
        return cls(
            time_cost=ctx.hash_time_cost,
            memory_cost=ctx.hash_memory_cost,
            parallelism=ctx.hash_parallelism,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, digest: str) -> bool:
        """
        False for a well-formed digest that doesn't match.

        Raises CredentialDecodeError when the digest itself can't be parsed.
        """
        try:
            return self._context.verify(password, digest)
        except (ValueError, TypeError) as e:
            raise CredentialDecodeError(f"malformed password digest: {type(e).__name__}") from e

    def dummy_verify(self) -> None:
        # Same cost as a real verify, for accounts that don't exist
        self._context.dummy_verify()
