"""Authorization engine.

Decides requests against the policies of their audience.
"""

import logging

from gatekeeper.audit.models import AuditRecord
from gatekeeper.audit.sinks import AuditSink, LoggingAuditSink
from gatekeeper.authz.conditions import Context
from gatekeeper.authz.models import AuthzRequest, PolicyEffect
from gatekeeper.authz.principals import Principals
from gatekeeper.authz.registry import AudienceRegistry
from gatekeeper.authz.store import CompiledPolicy, PolicyStore

logger = logging.getLogger(__name__)


def evaluate_subject(
    store: PolicyStore,
    subject: str,
    resource: str,
    action: str,
    context: Context,
) -> tuple[bool, list[CompiledPolicy]]:
    """Evaluate every policy of a store for a single subject.

    Returns:
        (allowed, deciders): when denied by an explicit deny, deciders
        are the matching deny policies; when allowed, the matching
        allow policies; when nothing matched, an empty list.
    """
    allowed_by: list[CompiledPolicy] = []
    denied_by: list[CompiledPolicy] = []

    for policy in store:
        if not policy.matches(subject, resource, action, context):
            continue
        if policy.effect == PolicyEffect.DENY:
            denied_by.append(policy)
        else:
            allowed_by.append(policy)

    # Deny overrides allow.
    if denied_by:
        return False, denied_by
    if allowed_by:
        return True, allowed_by
    return False, []


class Doorman:
    """Authorization engine with deny-override and default deny.

    Evaluation order for each audience:
    1. Unknown audience: deny
    2. Each principal, in the order given, is tried as the subject
    3. Any matching deny policy denies that principal
    4. Otherwise any matching allow policy allows the request
    5. Default deny

    Usage:
        registry = AudienceRegistry(["policies.yaml"])
        registry.load()
        doorman = Doorman(registry, audit_sink=LoggingAuditSink())

        principals = doorman.expand_principals(audience, ["userid:42"])
        request = AuthzRequest(principals=principals, resource="doc:1", action="read")
        if doorman.is_allowed(audience, request):
            # Proceed
    """

    def __init__(
        self,
        registry: AudienceRegistry,
        audit_sink: AuditSink | None = None,
    ):
        self.registry = registry
        self.audit_sink = audit_sink if audit_sink is not None else LoggingAuditSink()

    def is_allowed(self, audience: str, request: AuthzRequest) -> bool:
        """Decide whether any of the request principals may act on the resource."""
        config = self.registry.lookup(audience)
        if config is None:
            logger.info("Access DENIED (unknown audience): audience=%s", audience)
            self._audit(audience, request, False, None, [])
            return False

        subject: str | None = None
        denied_by: list[str] = []
        for subject in request.principals:
            allowed, deciders = evaluate_subject(
                config.store,
                subject,
                request.resource,
                request.action,
                request.context,
            )
            if allowed:
                logger.debug(
                    "Access ALLOWED: audience=%s subject=%s resource=%s action=%s",
                    audience, subject, request.resource, request.action
                )
                self._audit(audience, request, True, subject, [p.id for p in deciders])
                return True

            for policy in deciders:
                if policy.id not in denied_by:
                    denied_by.append(policy.id)

        logger.debug(
            "Access DENIED: audience=%s principals=%s resource=%s action=%s",
            audience, request.principals, request.resource, request.action
        )
        self._audit(audience, request, False, subject, denied_by)
        return False

    def expand_principals(self, audience: str, principals: Principals) -> Principals:
        """Add the tags of the audience matching the principals."""
        config = self.registry.lookup(audience)
        if config is None:
            return list(principals)
        return config.tags.expand(principals)

    def _audit(
        self,
        audience: str,
        request: AuthzRequest,
        allowed: bool,
        subject: str | None,
        matched: list[str],
    ) -> None:
        self.audit_sink.log(AuditRecord(
            allowed=allowed,
            audience=audience,
            subject=subject,
            principals=list(request.principals),
            resource=request.resource,
            action=request.action,
            context=dict(request.context),
            matched_policies=matched,
        ))
