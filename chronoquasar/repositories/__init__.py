from chronoquasar.repositories.cache import AnalyticsCache  # noqa: F401
from chronoquasar.repositories.domains import DomainRepository  # noqa: F401
from chronoquasar.repositories.sessions import SessionRepository  # noqa: F401
