"""Identity extraction.

Turns verified claims into the principals used for authorization.
"""

import logging

from gatekeeper.auth.models import BadRequestError, Claims, ForbiddenError
from gatekeeper.authz import principals as p
from gatekeeper.authz.principals import Principals

logger = logging.getLogger(__name__)


def extract_principals(claims: Claims, origin: str | None) -> Principals:
    """Build the principals of a caller.

    The calling service must declare its origin, which has to be one of
    the token audiences. Principals are emitted in this order: user ID,
    main email (if any), then every group in claim order.

    Raises:
        BadRequestError: If the origin is missing
        ForbiddenError: If the origin is not an audience of the token
    """
    if not origin:
        raise BadRequestError()

    if not claims.has_audience(origin):
        logger.warning(
            "Origin %s not in token audiences %s", origin, claims.audience
        )
        raise ForbiddenError()

    principals: Principals = [p.userid(claims.subject)]
    if claims.email:
        principals.append(p.email(claims.email))
    for group in claims.groups:
        principals.append(p.group(group))
    return principals
