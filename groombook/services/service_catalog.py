"""
Service catalog lookups and configuration
"""
from groombook.context import ActorContext
from groombook.errors import NotFoundError, ValidationError
from groombook.models import Service, ServiceType
from groombook.storage import Storage


class ServiceCatalog:
    """Grooming services an organization offers"""

    def __init__(self, storage: Storage):
        self.storage = storage

    def get_service(self, ctx: ActorContext, service_id: int) -> Service:
        service = self.storage.get(Service, service_id)
        if service is None or service.organization_id != ctx.organization_id:
            raise NotFoundError(f"Service {service_id} not found")
        return service

    def list_services(self, ctx: ActorContext) -> list[Service]:
        return self.storage.query(Service, organization_id=ctx.organization_id, order_by=Service.name)

    def add_service(self, ctx: ActorContext, name: str, price: float,
                    service_type: str = ServiceType.CHECKBOX.value) -> Service:
        _validate(name, price, service_type)
        with self.storage.atomic():
            return self.storage.insert(Service, {
                "organization_id": ctx.organization_id,
                "name": name.strip(),
                "price": price,
                "type": ServiceType(service_type).value,
            })

    def update_service(self, ctx: ActorContext, service_id: int, name: str | None = None,
                       price: float | None = None) -> Service:
        """Edit a catalog entry. Completed bookings keep their snapshot prices."""
        service = self.get_service(ctx, service_id)
        patch = {}
        if name is not None:
            patch["name"] = name.strip()
        if price is not None:
            patch["price"] = price
        _validate(patch.get("name", service.name), patch.get("price", service.price), service.type)
        with self.storage.atomic():
            return self.storage.update(Service, service_id, patch)


def _validate(name: str, price: float, service_type: str) -> None:
    if not name or not name.strip():
        raise ValidationError("Service name is required")
    if price is None or price < 0:
        raise ValidationError("Service price must be zero or more")
    if service_type not in {t.value for t in ServiceType}:
        raise ValidationError(f"Unknown service type '{service_type}'")
