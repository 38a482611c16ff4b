"""
Ledger error taxonomy.

Every validation failure is raised before any write and carries a stable
``kind`` plus structured ``details`` (conflicting record code, date or
location) so API callers can correct the request without re-reading the
ledger. ``StorageUnavailable`` is the only retryable failure.
"""


class LedgerError(Exception):
    """Base class for all ledger failures"""
    kind = 'LedgerError'
    http_status = 400
    default_message = 'Ledger operation rejected'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        return {
            'success': False,
            'error': self.kind,
            'message': self.message,
            'details': self.details,
        }


# Direction rule failures
class DirectionViolation(LedgerError):
    kind = 'DirectionViolation'
    default_message = 'Direction is not allowed from the asset location before this movement'


class SourceMismatch(LedgerError):
    kind = 'SourceMismatch'
    default_message = 'Source unit does not match the asset location before this movement'


class TargetRequired(LedgerError):
    kind = 'TargetRequired'
    default_message = 'A target unit and site are required for this direction'


# Timeline failures
class TimelineError(LedgerError):
    kind = 'TimelineError'


class FutureDate(TimelineError):
    kind = 'FutureDate'
    default_message = 'Business date cannot be in the future'


class PredatesRegistration(TimelineError):
    kind = 'PredatesRegistration'
    default_message = 'Business date is earlier than the asset registration date'


class PrecedesPrevious(TimelineError):
    kind = 'PrecedesPrevious'
    default_message = 'Business date is earlier than the previous movement'


class FollowsNext(TimelineError):
    kind = 'FollowsNext'
    default_message = 'Business date is later than the next movement'


class TooOld(TimelineError):
    kind = 'TooOld'
    default_message = 'Business date is older than the allowed history window'


# Structural conflicts
class NoOpMovement(LedgerError):
    kind = 'NoOpMovement'
    http_status = 409
    default_message = 'Target location equals the source location'


class TargetConflict(LedgerError):
    kind = 'TargetConflict'
    http_status = 409
    default_message = 'Target location equals the target of the next movement'


class CascadeConflict(LedgerError):
    kind = 'CascadeConflict'
    http_status = 409
    default_message = 'Edit would make the next movement go from warehouse to warehouse'


class NotLastRecord(LedgerError):
    kind = 'NotLastRecord'
    http_status = 409
    default_message = 'Only the latest movement of an asset can be deleted'


# Lookup and payload failures
class NotFound(LedgerError):
    kind = 'NotFound'
    http_status = 404
    default_message = 'Resource not found'


class InvalidReference(LedgerError):
    kind = 'InvalidReference'
    default_message = 'Unknown or inactive unit/site reference'


class InvalidPayload(LedgerError):
    kind = 'InvalidPayload'
    default_message = 'Request payload is not valid'


# Storage faults
class StorageUnavailable(LedgerError):
    kind = 'StorageUnavailable'
    http_status = 503
    default_message = 'Ledger storage is temporarily unavailable'
