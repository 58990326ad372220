"""Domain layer for budgetkoll application.

Services are imported from their modules (``budgetkoll.domain.account`` etc.);
this package stays import-free so the database layer can load entities
without pulling in services.
"""
