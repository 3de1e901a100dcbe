from app.services.order_batches.deletion import BulkDeletionOrchestrator
from app.services.order_batches.orchestrator import BatchOrchestrator
from app.services.order_batches.product_cache import ProductResolutionCache
from app.services.order_batches.reconcile import Reconciliation, reconcile
from app.services.order_batches.types import (
    BatchDeletionResult,
    BatchNotFound,
    BatchNotPending,
    BatchResult,
    BatchRunError,
    DeletionSummary,
)

__all__ = [
    "BulkDeletionOrchestrator",
    "BatchOrchestrator",
    "ProductResolutionCache",
    "Reconciliation",
    "reconcile",
    "BatchDeletionResult",
    "BatchNotFound",
    "BatchNotPending",
    "BatchResult",
    "BatchRunError",
    "DeletionSummary",
]
