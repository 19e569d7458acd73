from dataclasses import dataclass


@dataclass(frozen=True)
class ActorContext:
    """Who is acting: passed explicitly into every approval-core call."""

    user_id: int
    authorization_level: int
    plant: str | None = None
    role: str = "USER"
    email: str | None = None

    @classmethod
    def from_user(cls, user) -> "ActorContext":
        return cls(
            user_id=user.id,
            authorization_level=user.authorization_level or 0,
            plant=user.plant or None,
            role=user.role,
            email=user.email,
        )

    @classmethod
    def from_approver(cls, approver) -> "ActorContext":
        """Actor for an email action link: the approver row defines level and plant."""
        user = approver.user
        return cls(
            user_id=approver.user_id,
            authorization_level=approver.approval_level,
            plant=approver.plant or None,
            role=getattr(user, "role", "USER"),
            email=getattr(user, "email", None),
        )
