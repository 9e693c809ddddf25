import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from jose import jwt, JWTError
from jose.exceptions import JWTClaimsError

from core.context import AppContext
from core.exceptions import TokenError, TokenErrorKind
from utils.clock import utc_now
from utils.logger import get_logger, truncate_token

logger = get_logger(__name__)

ISSUER = "chirpy"
ALGORITHM = "HS256"


class AccessTokenCodec:
    """
    Issues and verifies short-lived HS256 access tokens.

    Tokens are self-contained: {iss, sub, iat, exp}. Nothing is stored, so an
    issued token stays usable until it expires. iat and exp keep sub-second
    precision, so tokens issued at different instants always differ.
    """

    def __init__(self, ctx: AppContext, clock: Callable[[], datetime] = utc_now):
        self._secret = ctx.jwt_secret
        self._default_ttl = ctx.access_token_ttl
        self._clock = clock

    def issue(self, subject: uuid.UUID, ttl: Optional[timedelta] = None) -> str:
        """
        Create a signed access token for `subject`.

        Args:
            subject: user id the token vouches for
            ttl: lifetime (default: the configured access token TTL)
        """
        if ttl is None:
            ttl = self._default_ttl

        now = self._clock()
        payload = {
            "iss": ISSUER,
            "sub": str(subject),
            "iat": now.timestamp(),
            "exp": (now + ttl).timestamp(),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> uuid.UUID:
        """
        Verify `token` and return its subject.

        Raises:
            TokenError: kind tells which check failed. The token itself only
                ever reaches the logs as a short preview.
        """
        preview = truncate_token(token)

        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            logger.info("Access token header unreadable", extra={"token_preview": preview})
            raise TokenError(TokenErrorKind.MALFORMED_TOKEN)

        if header.get("alg") != ALGORITHM:
            logger.warning(
                "Access token signed with unexpected algorithm",
                extra={"expected": ALGORITHM, "got": header.get("alg"), "token_preview": preview}
            )
            raise TokenError(TokenErrorKind.ALGORITHM_MISMATCH)

        try:
            # Expiry and subject are checked below
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                issuer=ISSUER,
                options={"verify_exp": False, "verify_sub": False},
            )
        except JWTClaimsError as e:
            logger.info(
                "Access token claims rejected",
                extra={"error": str(e), "token_preview": preview}
            )
            raise TokenError(TokenErrorKind.MALFORMED_TOKEN)
        except JWTError as e:
            logger.info(
                "Access token signature rejected",
                extra={"error": str(e), "token_preview": preview}
            )
            raise TokenError(TokenErrorKind.SIGNATURE_INVALID)

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            logger.info("Access token has no usable exp claim", extra={"token_preview": preview})
            raise TokenError(TokenErrorKind.MALFORMED_TOKEN)

        if self._clock().timestamp() >= exp:
            logger.info("Access token expired", extra={"exp": exp, "token_preview": preview})
            raise TokenError(TokenErrorKind.EXPIRED)

        try:
            return uuid.UUID(str(claims.get("sub")))
        except ValueError:
            logger.warning(
                "Access token subject is not a valid UUID",
                extra={"token_preview": preview}
            )
            raise TokenError(TokenErrorKind.MALFORMED_SUBJECT)
