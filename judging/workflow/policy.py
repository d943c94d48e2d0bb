"""Workflow policy tables: who may certify, approve and sign what."""
from dataclasses import dataclass, field
from typing import ClassVar, Dict, FrozenSet, Iterable, List, Optional, Tuple

from judging.core.config import settings
from judging.db.enums import Role, ScopeKind

# Sign-off order within a single scope
CERTIFICATION_SEQUENCE: Tuple[Role, ...] = (
    Role.JUDGE,
    Role.TALLY_MASTER,
    Role.AUDITOR,
    Role.BOARD,
    Role.ORGANIZER,
)


def _identity(*roles: Role) -> Dict[Role, Role]:
    return {role: role for role in roles}


def _parse_roles(values: Iterable[str]) -> Tuple[Role, ...]:
    roles = []
    for value in values:
        role = Role.parse(value)
        if role is None:
            raise ValueError(f"Unknown role in workflow configuration: {value!r}")
        if role not in roles:
            roles.append(role)
    return tuple(roles)


@dataclass(frozen=True)
class ScopeRule:
    """
    Certification rule for one scope kind.

    Attributes:
        required: Slots that must all be certified for the scope to be complete
        allowed: Actor role -> slot the actor certifies when acting
    """

    required: Tuple[Role, ...]
    allowed: Dict[Role, Role]

    def slot_for(self, actor_role: Role) -> Optional[Role]:
        return self.allowed.get(actor_role)

    @property
    def slots(self) -> Tuple[Role, ...]:
        """Every certifiable slot, ordered by sign-off sequence"""
        distinct = set(self.required) | set(self.allowed.values())
        return tuple(role for role in CERTIFICATION_SEQUENCE if role in distinct)


DEFAULT_SCOPE_RULES: Dict[ScopeKind, ScopeRule] = {
    ScopeKind.JUDGE_CONTESTANT: ScopeRule(
        required=(Role.JUDGE,),
        allowed={
            Role.JUDGE: Role.JUDGE,
            # Overrides stand in for the judge's own sign-off
            Role.ADMIN: Role.JUDGE,
            Role.TALLY_MASTER: Role.JUDGE,
            Role.AUDITOR: Role.JUDGE,
        },
    ),
    ScopeKind.CONTESTANT_CATEGORY: ScopeRule(
        required=(Role.TALLY_MASTER, Role.AUDITOR),
        allowed=_identity(Role.TALLY_MASTER, Role.AUDITOR),
    ),
    ScopeKind.CATEGORY: ScopeRule(
        required=(Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD),
        allowed=_identity(Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD, Role.ORGANIZER),
    ),
    ScopeKind.CONTEST: ScopeRule(
        required=(Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD, Role.ORGANIZER),
        allowed=_identity(Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD, Role.ORGANIZER),
    ),
    ScopeKind.EVENT: ScopeRule(
        required=(Role.BOARD, Role.ORGANIZER),
        allowed=_identity(Role.BOARD, Role.ORGANIZER),
    ),
}


@dataclass(frozen=True)
class CertificationPolicy:
    """Per-scope-kind certification rules with sign-off ordering"""

    rules: Dict[ScopeKind, ScopeRule] = field(
        default_factory=lambda: dict(DEFAULT_SCOPE_RULES)
    )

    def rule(self, kind: ScopeKind) -> ScopeRule:
        return self.rules[kind]

    def required_roles(self, kind: ScopeKind) -> Tuple[Role, ...]:
        return self.rules[kind].required

    def slot_for(self, kind: ScopeKind, actor_role: Role) -> Optional[Role]:
        """Slot certified by an actor with this role, or None if not allowed"""
        return self.rules[kind].slot_for(actor_role)

    def preceding_required(self, kind: ScopeKind, slot: Role) -> List[Role]:
        """Required slots that must be certified before ``slot`` on the same scope"""
        position = CERTIFICATION_SEQUENCE.index(slot)
        return [
            role
            for role in self.rules[kind].required
            if CERTIFICATION_SEQUENCE.index(role) < position
        ]

    def with_rule(self, kind: ScopeKind, rule: ScopeRule) -> "CertificationPolicy":
        rules = dict(self.rules)
        rules[kind] = rule
        return CertificationPolicy(rules=rules)


@dataclass(frozen=True)
class DeductionPolicy:
    """
    Deduction quorum configuration.

    Every slot in ``required_approvers`` must approve. ORGANIZER and ADMIN
    decide in the BOARD slot.
    """

    REQUESTER_ROLES: ClassVar[FrozenSet[Role]] = frozenset(
        {Role.JUDGE, Role.ORGANIZER, Role.BOARD, Role.ADMIN}
    )
    APPLIER_ROLES: ClassVar[FrozenSet[Role]] = frozenset(
        {Role.ADMIN, Role.TALLY_MASTER, Role.BOARD, Role.ORGANIZER}
    )
    APPROVER_ALIASES: ClassVar[Dict[Role, Role]] = {
        Role.ORGANIZER: Role.BOARD,
        Role.ADMIN: Role.BOARD,
    }

    required_approvers: Tuple[Role, ...] = field(
        default_factory=lambda: _parse_roles(settings.deduction_required_approvers)
    )

    def approver_slot(self, role: Role) -> Optional[Role]:
        """Slot an approver decides in, or None if the role is not a required approver"""
        slot = self.APPROVER_ALIASES.get(role, role)
        return slot if slot in self.required_approvers else None


@dataclass(frozen=True)
class UncertificationPolicy:
    """Uncertification quorum: every signer role must co-sign before execution"""

    required_signers: Tuple[Role, ...] = field(
        default_factory=lambda: _parse_roles(settings.uncertification_required_signers)
    )

    def is_signer(self, role: Role) -> bool:
        return role in self.required_signers


RESET_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.ORGANIZER, Role.BOARD})
