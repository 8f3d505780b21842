"""User registration — command and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import String
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shared.errors import CustomerNotFoundError, NotPermittedError
from logistics.user.user import User


@logistics.command(part_of="User")
class RegisterUser:
    """Create a platform user with a role."""

    name: String(required=True, max_length=150)
    email: String(required=True, max_length=254)
    role: String(required=True, max_length=20)
    phone: String(max_length=20)
    license_number: String(max_length=50)


@logistics.command_handler(part_of=User)
class RegisterUserHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        user = User.register(
            name=command.name,
            email=command.email,
            role=command.role,
            phone=command.phone,
            license_number=command.license_number,
        )
        current_domain.repository_for(User).add(user)
        return str(user.id)


def resolve_customer(customer_id: str) -> User:
    """Load the user placing a shipment, or raise ``CustomerNotFoundError``.

    Unknown ids and users whose role cannot request shipments are treated the
    same way.
    """
    try:
        user = current_domain.repository_for(User).get(customer_id)
    except ObjectNotFoundError as exc:
        raise CustomerNotFoundError(f"Customer {customer_id} not found") from exc
    if not user.can_request_shipments:
        raise CustomerNotFoundError(f"User {customer_id} cannot request shipments")
    return user


def resolve_operator(user_id: str) -> User:
    """Load a driver or captain. Unknown ids raise ``ObjectNotFoundError``."""
    user = current_domain.repository_for(User).get(user_id)
    if not user.can_operate_vehicles:
        raise NotPermittedError({"role": [f"User {user_id} does not operate vehicles"]})
    return user


def resolve_admin(user_id: str) -> User:
    user = current_domain.repository_for(User).get(user_id)
    if not user.can_manage_fleet:
        raise NotPermittedError({"role": [f"User {user_id} cannot manage the fleet"]})
    return user
