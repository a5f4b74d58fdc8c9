from __future__ import annotations

from .exceptions import Forbidden, NotFound
from .models import Membership, Squad


def squad_for_member(squad_id: int, user_id: int) -> Squad:
    """Load a squad on behalf of a member, hiding it from everyone else."""
    try:
        squad = Squad.objects.get(pk=squad_id)
    except Squad.DoesNotExist:
        raise NotFound("Squad not found.")
    if not squad.has_member(user_id):
        raise Forbidden("Not a member of this squad.")
    return squad


def require_squad_admin(squad: Squad, user) -> None:
    """Staff and squad admins may drive the lifecycle by hand."""
    if user.is_staff:
        return
    if not squad.memberships.filter(user_id=user.id, role=Membership.ROLE_ADMIN).exists():
        raise Forbidden("Squad admin required.")
