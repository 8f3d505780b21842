"""User aggregate — one person on the platform, tagged with a role.

Roles are a tag rather than a class hierarchy. What a user may do is decided by
capability checks that read the tag:

    CUSTOMER  → requests shipments
    DRIVER    → operates road and air vehicles
    CAPTAIN   → operates ships
    ADMIN     → manages the fleet (and may request shipments)
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String

from logistics.domain import logistics


class UserRole(Enum):
    CUSTOMER = "CUSTOMER"
    DRIVER = "DRIVER"
    CAPTAIN = "CAPTAIN"
    ADMIN = "ADMIN"


_SHIPPING_ROLES = {UserRole.CUSTOMER, UserRole.ADMIN}
_OPERATOR_ROLES = {UserRole.DRIVER, UserRole.CAPTAIN}


@logistics.event(part_of="User")
class UserRegistered:
    __version__ = 1

    user_id: Identifier(required=True)
    email: String(required=True)
    role: String(required=True)
    registered_at: DateTime(required=True)


@logistics.aggregate
class User:
    """A registered person: customer, driver, ship captain or administrator."""

    name: String(required=True, max_length=150)
    email: String(required=True, max_length=254)
    role: String(required=True, choices=UserRole)
    phone: String(max_length=20)
    license_number: String(max_length=50)
    registered_at: DateTime()

    @classmethod
    def register(cls, name: str, email: str, role: str, phone: str | None = None, license_number: str | None = None):
        if not email or email.count("@") != 1:
            raise ValidationError({"email": [f"Invalid email address: {email!r}"]})
        if role not in {r.value for r in UserRole}:
            raise ValidationError({"role": [f"Unknown role: {role!r}"]})
        role = UserRole(role)
        if role in _OPERATOR_ROLES and not license_number:
            raise ValidationError({"license_number": [f"A {role.value.lower()} needs a license number"]})

        now = datetime.now(UTC)
        user = cls(
            name=name,
            email=email.lower(),
            role=role.value,
            phone=phone,
            license_number=license_number,
            registered_at=now,
        )
        user.raise_(
            UserRegistered(
                user_id=str(user.id),
                email=user.email,
                role=user.role,
                registered_at=now,
            )
        )
        return user

    @property
    def can_request_shipments(self) -> bool:
        return UserRole(self.role) in _SHIPPING_ROLES

    @property
    def can_operate_vehicles(self) -> bool:
        return UserRole(self.role) in _OPERATOR_ROLES

    @property
    def can_manage_fleet(self) -> bool:
        return UserRole(self.role) == UserRole.ADMIN

    def can_operate(self, vehicle_type: str) -> bool:
        """Captains sail ships; drivers handle everything else."""
        role = UserRole(self.role)
        if vehicle_type == "SHIP":
            return role == UserRole.CAPTAIN
        return role == UserRole.DRIVER

    def to_summary(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "capabilities": {
                "can_request_shipments": self.can_request_shipments,
                "can_operate_vehicles": self.can_operate_vehicles,
                "can_manage_fleet": self.can_manage_fleet,
            },
        }
