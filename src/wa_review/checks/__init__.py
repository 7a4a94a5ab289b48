"""Built-in check catalog.

New checks are added to :data:`RESOURCE_CHECKS` or :data:`CROSS_RESOURCE_CHECKS`;
:func:`wa_review.engine.build_registry` instantiates them in list order.
"""

from .base import Check, CrossResourceCheck, ResourceCheck
from .cloudtrail import CrossLogGroup, MultiRegionTrail
from .kms import KeyRotation
from .rds import StorageEncryption
from .s3 import BucketEncryption, BucketVersioning, CrossEncryptionConfig
from .vpc import CrossFlowLog, FlowLogTrafficType, OpenIngress

RESOURCE_CHECKS = (
    BucketEncryption,
    BucketVersioning,
    OpenIngress,
    FlowLogTrafficType,
    StorageEncryption,
    KeyRotation,
    MultiRegionTrail,
)

CROSS_RESOURCE_CHECKS = (
    CrossEncryptionConfig,
    CrossFlowLog,
    CrossLogGroup,
)

__all__ = [
    "CROSS_RESOURCE_CHECKS",
    "RESOURCE_CHECKS",
    "BucketEncryption",
    "BucketVersioning",
    "Check",
    "CrossEncryptionConfig",
    "CrossFlowLog",
    "CrossLogGroup",
    "CrossResourceCheck",
    "FlowLogTrafficType",
    "KeyRotation",
    "MultiRegionTrail",
    "OpenIngress",
    "ResourceCheck",
    "StorageEncryption",
]
