"""Sync engine: remote snapshot and reconciliation of local template files."""

from .errors import ReconcileError, OrphanedReferenceError, DuplicateReferenceError
from .models import FileOutcome, FileResult, PlannedOperation, SyncReport
from .reconciler import Reconciler
from .remote_index import RemoteIndex

__all__ = [
    'ReconcileError',
    'OrphanedReferenceError',
    'DuplicateReferenceError',
    'FileOutcome',
    'FileResult',
    'PlannedOperation',
    'SyncReport',
    'Reconciler',
    'RemoteIndex',
]
