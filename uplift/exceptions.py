"""Custom exception hierarchy for uplift."""


class UpliftError(Exception):
    """Base for all uplift errors."""


class FatalMigrationError(UpliftError):
    """A unit's direct phase failed. The store must not be used."""


class StoreInitializationError(FatalMigrationError):
    """Store bootstrap aborted because a direct phase failed."""


class MigrationLockedError(UpliftError):
    """Another process is currently migrating the store."""


class UpdateStateError(UpliftError):
    """Invalid update unit state transition."""


class CatalogError(UpliftError):
    """Duplicate or malformed update catalog entry."""
