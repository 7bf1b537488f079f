"""
Signed URLs - Dispatch Integration Module

Hooks connecting URL signing and verification to a storefront's download
pipeline, and the payment-store collaborators they consume.
"""

from .payments import (
    PaymentMeta,
    PaymentStore,
    InMemoryPaymentStore,
    HttpPaymentStore,
    PaymentServiceConfig,
    resolve_payment_id,
)

from .hooks import (
    DownloadUrlBuilder,
    DownloadRequestProcessor,
    DownloadRequestStatus,
    ProcessedDownload,
    SECURE_PARAMS,
    decode_expire,
    with_options,
)

__all__ = [
    # Payment stores
    'PaymentMeta',
    'PaymentStore',
    'InMemoryPaymentStore',
    'HttpPaymentStore',
    'PaymentServiceConfig',
    'resolve_payment_id',
    # Hooks
    'DownloadUrlBuilder',
    'DownloadRequestProcessor',
    'DownloadRequestStatus',
    'ProcessedDownload',
    'SECURE_PARAMS',
    'decode_expire',
    'with_options',
]
