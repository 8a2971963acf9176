"""Domain repository — registered websites, in creation order."""

from chronoquasar.errors import NotFoundError
from chronoquasar.models import Domain


class DomainRepository:
    def __init__(self):
        self._domains: dict[str, Domain] = {}

    def list(self) -> list[Domain]:
        return list(self._domains.values())

    def find(self, domain_id: str) -> Domain | None:
        return self._domains.get(domain_id)

    def get(self, domain_id: str) -> Domain:
        domain = self._domains.get(domain_id)
        if domain is None:
            raise NotFoundError("Domain not found")
        return domain

    def add(self, domain: Domain) -> Domain:
        self._domains[domain.id] = domain
        return domain

    def remove(self, domain_id: str) -> Domain:
        domain = self.get(domain_id)
        del self._domains[domain_id]
        return domain

    def __len__(self) -> int:
        return len(self._domains)
