"""Base service class for domain services."""


class Service:
    """Base class for all domain services.

    Domain services hold the reply engine's behaviour. Each open thread view
    owns its own set of service instances sharing one TreeCache.
    """

    pass
